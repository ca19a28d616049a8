from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Message(BaseModel):
    """
    Outbound reply payload. Rendering it for a concrete gateway is the gateway's job.
    """
    model_config = ConfigDict(extra='forbid')

    content: Optional[str] = None
    embeds: List[Dict[str, Any]] = Field(default_factory=list)
    ephemeral: bool = False

    @classmethod
    def coerce(cls, value: Any) -> Optional["Message"]:
        """
        Turn a handler result into a Message. Falsy results mean "no reply".
        """
        if isinstance(value, Message):
            return value
        if not value:
            return None
        if isinstance(value, str):
            return cls(content=value)
        if isinstance(value, dict):
            return cls(**value)
        return cls(content=str(value))


class Command(BaseModel):
    """
    A request handler definition, loaded from the commands directory.
    """
    model_config = ConfigDict(frozen=True, extra='forbid', arbitrary_types_allowed=True)

    identifier: str = Field(..., pattern=r'^[\w-]{1,32}$')
    description: str = "No description provided"
    handler: Callable[..., Any]
    errors: Literal["hidden", "visible"] = "visible"
    nsfw: bool = False
    permissions: List[int] = Field(default_factory=list)
    contexts: Optional[List[int]] = None
    name_localizations: Dict[str, str] = Field(default_factory=dict)
    description_localizations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("identifier")
    @classmethod
    def identifier_must_be_lowercase(cls, value: str) -> str:
        if value != value.lower():
            raise ValueError(f"Command identifier '{value}' must be lowercase.")
        return value

    @property
    def hidden_errors(self) -> bool:
        return self.errors == "hidden"

    def to_payload(self) -> Dict[str, Any]:
        """
        Registration payload sent to the gateway. Must stay JSON-serialisable since its
        content hash decides whether registration is skipped.
        """
        default_member_permissions: Optional[str] = None
        if self.permissions:
            bits = 0
            for permission in self.permissions:
                bits |= permission
            default_member_permissions = str(bits)

        contexts = None
        if self.contexts is not None:
            contexts = list(dict.fromkeys(self.contexts))

        return {
            "name": self.identifier,
            "description": self.description or "No description provided",
            "options": [],
            "nsfw": self.nsfw,
            "name_localizations": dict(self.name_localizations),
            "description_localizations": dict(self.description_localizations),
            "default_member_permissions": default_member_permissions,
            "contexts": contexts,
        }


class Event(BaseModel):
    """
    An event handler definition, loaded from the events directory.
    """
    model_config = ConfigDict(frozen=True, extra='forbid', arbitrary_types_allowed=True)

    event: str = Field(..., min_length=1)
    handler: Callable[..., Any]
    # Informational only; handlers stay attached after firing.
    once: bool = False


class FrameworkSettings(BaseSettings):
    """
    Framework-level settings (the 'hotwire' section in hotwire.yaml).
    """
    model_config = SettingsConfigDict(env_prefix='HOTWIRE_', extra='ignore')

    env: str = "development"
    app_name: str = "Hotwire App"
    log_level: str = "INFO"
    token: str = ""


class DiscoverySettings(BaseModel):
    """
    Where definitions and components live (the 'discovery' section).
    """
    model_config = ConfigDict(extra='ignore')

    commands_dir: str = "commands"
    events_dir: str = "events"
    components_dir: str = "components"
    suffixes: List[str] = Field(default_factory=lambda: [".py"])
    export_name: str = "default"


class CommandSettings(BaseModel):
    """
    Dispatch and registration settings (the 'commands' section).
    """
    model_config = ConfigDict(extra='ignore')

    match_mode: Literal["exact", "prefix"] = "exact"
    prefix_separator: str = "."
    cache_dir: str = ".cache"
    hash_file: str = "commands.hash"
    register_commands: bool = True


class HotReloadSettings(BaseModel):
    """
    Component hot reload settings (the 'hot_reload' section).
    """
    model_config = ConfigDict(extra='ignore')

    enabled: bool = False
    interval_ms: int = Field(default=200, ge=50)
    stability_ms: int = Field(default=500, ge=0)
    include_patterns: List[str] = Field(default_factory=lambda: ["*.py"])
    exclude_patterns: List[str] = Field(default_factory=lambda: [".*", "_*", "__pycache__/*"])


class HotwireConfig(BaseModel):
    """
    Resolved runtime configuration. Relative directories resolve against ``root_dir``.
    """
    model_config = ConfigDict(extra='ignore')

    root_dir: Path = Field(default_factory=Path.cwd)
    settings: FrameworkSettings = Field(default_factory=FrameworkSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    commands: CommandSettings = Field(default_factory=CommandSettings)
    hot_reload: HotReloadSettings = Field(default_factory=HotReloadSettings)

    @classmethod
    def from_dict(cls, root_dir: Path, config_dict: Optional[Dict[str, Any]] = None) -> "HotwireConfig":
        config_dict = config_dict or {}
        return cls(
            root_dir=root_dir,
            settings=FrameworkSettings(**(config_dict.get('hotwire') or {})),
            discovery=DiscoverySettings(**(config_dict.get('discovery') or {})),
            commands=CommandSettings(**(config_dict.get('commands') or {})),
            hot_reload=HotReloadSettings(**(config_dict.get('hot_reload') or {})),
        )

    def resolve(self, directory: str) -> Path:
        path = Path(directory).expanduser()
        if path.is_absolute():
            return path
        return self.root_dir / path

    @property
    def commands_path(self) -> Path:
        return self.resolve(self.discovery.commands_dir)

    @property
    def events_path(self) -> Path:
        return self.resolve(self.discovery.events_dir)

    @property
    def components_path(self) -> Path:
        return self.resolve(self.discovery.components_dir)

    @property
    def cache_path(self) -> Path:
        return self.resolve(self.commands.cache_dir)
