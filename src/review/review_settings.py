"""Settings for review sessions and the command line."""

from dataclasses import dataclass
import json
import os


@dataclass
class ReviewSettings:
    """
    User settings for prlens.
    """
    model: str = ""  # Empty means the engine's configured default
    language: str = ""  # Empty means the engine's default response language
    engine_command: str = "codex"
    engine_timeout: float | None = None  # Seconds, None means no limit
    cache_dir: str = "~/.prlens/cache"
    github_token: str = ""
    github_url: str = ""  # Empty means the public GitHub API
    split_threshold: int = 100

    @staticmethod
    def default_path() -> str:
        """Get the default settings file path."""
        return os.path.expanduser("~/.prlens/settings.json")

    @classmethod
    def create_default(cls) -> "ReviewSettings":
        """Create a new ReviewSettings object with default values."""
        return cls(github_token=os.environ.get("GITHUB_TOKEN", ""))

    @classmethod
    def load(cls, path: str) -> "ReviewSettings":
        """
        Load settings from file.

        Missing keys keep their defaults.  If no token is stored, GITHUB_TOKEN from the
        environment is used.

        Args:
            path: Path to the settings file

        Returns:
            ReviewSettings object with loaded values

        Raises:
            json.JSONDecodeError: If file contains invalid JSON
        """
        # Start with default settings
        settings = cls.create_default()

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

            settings.model = data.get("model", settings.model) or ""
            settings.language = data.get("language", settings.language) or ""
            settings.engine_command = data.get("engineCommand", settings.engine_command) or "codex"
            settings.engine_timeout = data.get("engineTimeout", settings.engine_timeout)
            settings.cache_dir = data.get("cacheDir", settings.cache_dir) or settings.cache_dir
            settings.github_token = data.get("githubToken") or settings.github_token
            settings.github_url = data.get("githubUrl", settings.github_url) or ""
            settings.split_threshold = int(data.get("splitThreshold", settings.split_threshold))

        return settings

    def expanded_cache_dir(self) -> str:
        """Get the cache directory with "~" expanded."""
        return os.path.expanduser(self.cache_dir)

    def save(self, path: str) -> None:
        """
        Save settings to file.

        Args:
            path: Path to save the settings file

        Raises:
            OSError: If there's an issue creating the directory or writing the file
        """
        # Ensure directory exists; a bare filename lives in the working directory
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, mode=0o700, exist_ok=True)

        data = {
            "model": self.model,
            "language": self.language,
            "engineCommand": self.engine_command,
            "engineTimeout": self.engine_timeout,
            "cacheDir": self.cache_dir,
            "githubToken": self.github_token,
            "githubUrl": self.github_url,
            "splitThreshold": self.split_threshold
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)

        # Set secure permissions for settings file (contains the GitHub token)
        os.chmod(path, 0o600)
