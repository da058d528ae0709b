from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContainerSettings(BaseSettings):
    """Container configuration, read from ``VULPES_CONTAINER_*`` environment variables.

    Attributes:
        interface_suffix: Suffix stripped by the interface naming convention.
        member_separator: Separator between a type name and a member name.
        self_identifier: Extra identifier that resolves to the container itself.
        log_resolutions: Emit an INFO record for every top-level resolution.
    """

    model_config = SettingsConfigDict(env_prefix="VULPES_CONTAINER_", frozen=True)

    interface_suffix: str = Field(default="Interface", min_length=1)
    member_separator: str = Field(default="::", min_length=1)
    self_identifier: str = Field(default="container")
    log_resolutions: bool = False
