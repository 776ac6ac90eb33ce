import base64
import os
from typing import Any

import pytest
import pytest_asyncio
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from dotenv import load_dotenv

from blobstorageadapter import BlobStorageAdapter, Settings

load_dotenv()

# Azure config
ACCOUNT = os.environ.get("AZURE_STORAGE_ACCOUNT")
KEY = os.environ.get("AZURE_STORAGE_KEY")
CONTAINER_NAME = os.environ.get("AZURE_CONTAINER", "blobstorageadapter-tests")

# Local config
FAKE_ACCOUNT = "devaccount"
FAKE_KEY = base64.b64encode(b"not-a-real-storage-account-key!!").decode()
LOCAL_CONTAINER = "test-container"


# ---------------------------
# In-memory stand-ins for the aio SDK clients
# ---------------------------
class FakeDownload:
    def __init__(self, data: bytes) -> None:
        self._data = data

    async def readall(self) -> bytes:
        return self._data


class FakeBlobClient:
    def __init__(self, service: "FakeServiceClient", container: str, name: str):
        self._service = service
        self.container_name = container
        self.blob_name = name

    def _blobs(self) -> dict[str, bytes]:
        try:
            return self._service.containers[self.container_name]
        except KeyError:
            raise ResourceNotFoundError(
                f"The specified container does not exist: {self.container_name}"
            )

    async def upload_blob(self, data: bytes, **kwargs: Any) -> None:
        blobs = self._blobs()
        if self.blob_name in blobs and not kwargs.get("overwrite", False):
            raise ResourceExistsError(f"The specified blob already exists: {self.blob_name}")
        blobs[self.blob_name] = bytes(data)
        self._service.upload_kwargs[(self.container_name, self.blob_name)] = kwargs

    async def download_blob(self) -> FakeDownload:
        blobs = self._blobs()
        if self.blob_name not in blobs:
            raise ResourceNotFoundError(f"The specified blob does not exist: {self.blob_name}")
        return FakeDownload(blobs[self.blob_name])


class FakeContainerClient:
    def __init__(self, service: "FakeServiceClient", name: str) -> None:
        self._service = service
        self.container_name = name

    async def exists(self) -> bool:
        self._service.exists_calls += 1
        return self.container_name in self._service.containers

    def get_blob_client(self, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self._service, self.container_name, blob)


class FakeServiceClient:
    def __init__(self) -> None:
        self.containers: dict[str, dict[str, bytes]] = {}
        self.upload_kwargs: dict[tuple[str, str], dict[str, Any]] = {}
        self.created: list[str] = []
        self.exists_calls = 0
        self.closed = False

    def get_container_client(self, container: str) -> FakeContainerClient:
        return FakeContainerClient(self, container)

    async def create_container(self, name: str) -> FakeContainerClient:
        if name in self.containers:
            raise ResourceExistsError(f"The specified container already exists: {name}")
        self.containers[name] = {}
        self.created.append(name)
        return FakeContainerClient(self, name)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeServiceClient:
    return FakeServiceClient()


@pytest.fixture
def account_key() -> str:
    return FAKE_KEY


@pytest.fixture
def adapter(fake_client) -> BlobStorageAdapter:
    return BlobStorageAdapter(FAKE_ACCOUNT, FAKE_KEY, blob_service_client=fake_client)


# ---------------------------
# Parametrize backends
# ---------------------------
@pytest_asyncio.fixture(
    params=[
        pytest.param("azure", marks=pytest.mark.azure),
        pytest.param("local", marks=pytest.mark.local),
    ]
)
async def backend(request):
    """Fixture that provides an adapter and an existing container."""
    if request.param == "azure":
        if not ACCOUNT or not KEY:
            pytest.skip(
                "Azure backend not configured (AZURE_STORAGE_ACCOUNT / AZURE_STORAGE_KEY missing)"
            )
        storage = BlobStorageAdapter.from_settings(Settings(ACCOUNT, KEY))
        container_client = await storage.create_container(CONTAINER_NAME)

        yield storage, CONTAINER_NAME

        # Cleanup for Azure after test
        async for blob in container_client.list_blobs(name_starts_with="test_"):
            await container_client.delete_blob(blob.name)
        await storage.close()

    elif request.param == "local":
        storage = BlobStorageAdapter(
            FAKE_ACCOUNT, FAKE_KEY, blob_service_client=FakeServiceClient()
        )
        await storage.create_container(LOCAL_CONTAINER)
        yield storage, LOCAL_CONTAINER
        await storage.close()
