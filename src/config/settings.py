"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use HTMLPACK_ prefix (e.g., HTMLPACK_INDENT_SIZE=2).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use HTMLPACK_ prefix.

    Examples:
        HTMLPACK_DEFAULT_SCOPE=app
        HTMLPACK_MODULE_FORMAT=esm
        HTMLPACK_INDENT_SIZE=2
    """

    model_config = SettingsConfigDict(
        env_prefix="HTMLPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Pipeline option defaults
    default_scope: str = Field(
        default="none",
        description="Root style scope applied when the host supplies none ('none' disables root scoping)",
    )

    # Serializer configuration
    indent_size: int = Field(
        default=4,
        ge=1,
        description="Indentation width used when pretty-printing render functions",
    )

    module_format: Literal["commonjs", "esm"] = Field(
        default="commonjs",
        description="Export style of the generated module",
    )

    # Diagnostics configuration
    message_prefix: str = Field(
        default="htmlpack",
        description="Prefix identifying this transform in host warnings and errors",
    )

    fallback_message: str = Field(
        default="Template compilation already failed under build-time",
        description="Runtime error raised by the fallback renderer of a template that failed to compile",
    )

    # Enrichment configuration
    lorem_words: int = Field(
        default=20,
        ge=1,
        description="Number of placeholder words produced by a bare <lorem> element",
    )

    # Logging configuration
    verbosity: int = Field(
        default=1,
        ge=0,
        description="Default logging verbosity for transforms not started from the CLI",
    )

    def message_make(self, component: str, severity: str, body: str) -> str:
        """
        Build a host-facing diagnostic message.

        Args:
            component: Component tag (e.g., "template-compiler"), or "" for
                       the orchestrator itself
            severity: "WARNING" or "ERROR"
            body: Message text

        Returns:
            Message string with the consistent component prefix

        Example:
            >>> settings = AppSettings()
            >>> settings.message_make("template-compiler", "ERROR", "boom")
            'htmlpack: [template-compiler]: ERROR: boom'
            >>> settings.message_make("", "ERROR", "boom")
            'htmlpack: ERROR: boom'
        """
        separator = "" if body.startswith("\n") else " "
        if component:
            return f"{self.message_prefix}: [{component}]: {severity}:{separator}{body}"
        return f"{self.message_prefix}: {severity}:{separator}{body}"


# Singleton instance - import this in your code
appsettings = AppSettings()
