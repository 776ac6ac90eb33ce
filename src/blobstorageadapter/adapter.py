import logging
import mimetypes
from dataclasses import dataclass
from typing import Any

from azure.core.credentials import AzureNamedKeyCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from .config import Settings, get_settings
from .sas import BlobSasOptions, ContainerSasOptions, sign_blob, sign_container
from .serializers import BinarySerializer, JSONSerializer, JSONValue, TextSerializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    filename: str
    container: str


class BlobStorageAdapter:
    """Azure Blob Storage adapter: SAS URLs plus JSON/text/binary payloads."""

    def __init__(
        self,
        account: str,
        key: str,
        blob_service_client: BlobServiceClient | None = None,
    ):
        """
        Bind to `https://{account}.blob.core.windows.net/` with a shared key.
        An existing BlobServiceClient may be passed to reuse custom
        transport or pipeline configuration.
        """
        self.account = account
        self.url = f"https://{account}.blob.core.windows.net/"
        self.credential = AzureNamedKeyCredential(account, key)
        self._client = blob_service_client or BlobServiceClient(
            self.url, credential=self.credential
        )
        self.json_serializer = JSONSerializer()
        self.text_serializer = TextSerializer()
        self.binary_serializer = BinarySerializer()

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, **kwargs: Any
    ) -> "BlobStorageAdapter":
        """
        Convenience builder: create adapter from environment settings.
        """
        settings = settings or get_settings()
        return cls(settings.account_name, settings.account_key, **kwargs)

    async def __aenter__(self) -> "BlobStorageAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    def generate_blob_sas(
        self,
        container: str,
        filename: str,
        valid_for: int = 1,
        valid_for_unit: str = "hour",
        content_type: str = "application/octet-stream",
        permissions: str = "r",
        *,
        options: BlobSasOptions | None = None,
    ) -> str:
        """
        Signed URL granting `permissions` on one blob.

        The token is valid from five minutes ago for `valid_for` units of
        `valid_for_unit` (e.g. "minute", "hour", "day", "month").
        `options`, when given, replaces the individual arguments.
        """
        options = options or BlobSasOptions(
            valid_for=valid_for,
            valid_for_unit=valid_for_unit,
            content_type=content_type,
            permissions=permissions,
        )
        token = sign_blob(
            self.account, self.credential.named_key.key, container, filename, options
        )
        return f"{self.url}{container}/{filename}?{token}"

    def generate_container_sas(
        self,
        container: str,
        valid_for: int = 1,
        valid_for_unit: str = "hour",
        permissions: str = "c",
        *,
        options: ContainerSasOptions | None = None,
    ) -> str:
        """Signed URL granting `permissions` on a whole container."""
        options = options or ContainerSasOptions(
            valid_for=valid_for,
            valid_for_unit=valid_for_unit,
            permissions=permissions,
        )
        token = sign_container(
            self.account, self.credential.named_key.key, container, options
        )
        return f"{self.url}{container}?{token}"

    async def create_container(self, container: str) -> ContainerClient:
        """Create the container unless it already exists."""
        container_client = self._client.get_container_client(container)
        if not await container_client.exists():
            await self._client.create_container(container)
            logger.info("Created container '%s'", container)
        return container_client

    async def write_json(
        self, container: str, filename: str, data: Any
    ) -> WriteResult:
        payload = self.json_serializer.serialize(data)
        return await self._upload(
            container, filename, payload, self.json_serializer.content_type
        )

    async def write_string(
        self, container: str, filename: str, data: str
    ) -> WriteResult:
        payload = self.text_serializer.serialize(data)
        return await self._upload(
            container, filename, payload, self.text_serializer.content_type
        )

    async def write_buffer(
        self, container: str, filename: str, data: bytes | bytearray | memoryview
    ) -> WriteResult:
        """Note: Guesses content type from the filename."""
        payload = self.binary_serializer.serialize(data)
        guessed, _ = mimetypes.guess_type(filename)
        return await self._upload(
            container,
            filename,
            payload,
            guessed or self.binary_serializer.content_type,
        )

    async def read_string(self, container: str, filename: str) -> str:
        return self.text_serializer.deserialize(
            await self._download(container, filename)
        )

    async def read_json(self, container: str, filename: str) -> JSONValue:
        return self.json_serializer.deserialize(
            await self._download(container, filename)
        )

    async def read_buffer(self, container: str, filename: str) -> bytes:
        return self.binary_serializer.deserialize(
            await self._download(container, filename)
        )

    def _blob_client(self, container: str, filename: str):
        return self._client.get_container_client(container).get_blob_client(filename)

    async def _upload(
        self, container: str, filename: str, payload: bytes, content_type: str
    ) -> WriteResult:
        blob_client = self._blob_client(container, filename)
        await blob_client.upload_blob(
            payload,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )
        logger.debug(
            "Uploaded %d bytes to '%s/%s' (%s)",
            len(payload),
            container,
            filename,
            content_type,
        )
        return WriteResult(filename=filename, container=container)

    async def _download(self, container: str, filename: str) -> bytes:
        blob_client = self._blob_client(container, filename)
        stream = await blob_client.download_blob()
        data = await stream.readall()
        logger.debug("Downloaded %d bytes from '%s/%s'", len(data), container, filename)
        return data
