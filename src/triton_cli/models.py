from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Image(BaseModel):
    """
    An image record as returned by CloudAPI.

    Only the fields the CLI reads are declared; everything else the server
    sends is kept as extra attributes so `--json` style dumps stay lossless.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    version: str = ""
    published_at: Optional[str] = None
    state: Optional[str] = None
    os: Optional[str] = None
    type: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.id.split("-", 1)[0]


class ExportPath(BaseModel):
    """
    Where an exported image landed in Manta.

    manta_url: the Manta endpoint the image was written to
    manifest_path: object path of the image manifest
    image_path: object path of the image file
    """
    model_config = ConfigDict(extra="allow")

    manta_url: str
    manifest_path: str
    image_path: str


class Profile(BaseModel):
    """
    Connection settings for one CloudAPI endpoint.

    name: profile name ("env" when built purely from the environment)
    url: CloudAPI base URL
    account: login the API paths are scoped to
    key_id: optional SSH key fingerprint (recorded, not used for signing);
        profile files may spell it "keyId"
    insecure: skip TLS certificate verification
    timeout: per-request timeout in seconds
    """
    name: str = "env"
    url: str
    account: str
    key_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("key_id", "keyId"))
    insecure: bool = False
    timeout: float = 30.0
