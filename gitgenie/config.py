"""Configuration module for GitGenie.

This module provides a configuration class that holds all the settings
for the commit workflow, the credential vault and the AI suggestions.
"""

from pathlib import Path
from typing import List, Optional, Union

# Conventional commit vocabulary offered by the CLI and the palette.
COMMIT_TYPES = (
    "feat", "fix", "docs", "style", "refactor",
    "test", "chore", "ci", "build", "perf",
)


class Config:
    """Configuration class for GitGenie.

    Attributes:
        service_name: Keyring service under which secrets are stored.
        api_key_account: Keyring account holding the AI API key.
        encryption_key_account: Keyring account holding the file encryption key.
        env_var: Environment variable that overrides every persisted key.
        config_dir: Directory of the encrypted fallback config file.
        config_file_name: Name of the encrypted fallback config file.
        provider: Name of the g4f provider used for suggestions.
        model: Model name passed to the g4f provider.
        main_branch: Name of the integration branch.
        remote_name: Name of the remote pushed to.
        max_push_retries: Retries after the first failed push.
        branch_name_max_length: Longest AI branch name accepted as-is.
    """

    def __init__(
        self,
        service_name: str = "GitGenie",
        api_key_account: str = "gemini_api_key",
        encryption_key_account: str = "encryption_key",
        env_var: str = "GEMINI_API_KEY",
        config_dir: Optional[Union[str, Path]] = None,
        config_file_name: str = "config.json",
        provider: str = "GeminiPro",
        model: str = "gemini-2.0-flash",
        main_branch: str = "main",
        remote_name: str = "origin",
        max_push_retries: int = 2,
        branch_name_max_length: int = 50,
    ):
        """Initialize the configuration with the given values.

        Raises:
            ValueError: If any value is invalid.
        """
        self.service_name: str = service_name
        self.api_key_account: str = api_key_account
        self.encryption_key_account: str = encryption_key_account
        self.env_var: str = env_var
        self.config_dir: Path = Path(config_dir) if config_dir is not None else Path.home() / ".gitgenie"
        self.config_file_name: str = config_file_name
        self.provider: str = provider
        self.model: str = model
        self.main_branch: str = main_branch
        self.remote_name: str = remote_name
        self.max_push_retries: int = max_push_retries
        self.branch_name_max_length: int = branch_name_max_length

        errors = self.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    @property
    def config_file(self) -> Path:
        return self.config_dir / self.config_file_name

    def validate(self) -> List[str]:
        """Return a list of validation errors, empty when the config is valid."""
        errors = []
        for name in ("service_name", "api_key_account", "encryption_key_account",
                     "env_var", "config_file_name", "provider", "model",
                     "main_branch", "remote_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{name} must be a non-empty string")

        if (not isinstance(self.max_push_retries, int) or isinstance(self.max_push_retries, bool)
                or not 0 <= self.max_push_retries <= 10):
            errors.append("max_push_retries must be an integer between 0 and 10")

        if (not isinstance(self.branch_name_max_length, int) or isinstance(self.branch_name_max_length, bool)
                or not 10 <= self.branch_name_max_length <= 255):
            errors.append("branch_name_max_length must be an integer between 10 and 255")

        return errors

    def is_valid(self) -> bool:
        return not self.validate()


# Default configuration instance
default_config = Config()
