"""
Secure settings for the hosted backend
Supabase anon key and database DSN, stored Fernet-encrypted under ~/.agri
with environment variables as fallback
"""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any
from cryptography.fernet import Fernet, InvalidToken
from dotenv import load_dotenv

from agri_app.utils.logger import get_logger

logger = get_logger(__name__)

SENSITIVE_KEYS = ('SUPABASE_ANON_KEY', 'SUPABASE_DB_DSN')
# upper bound of one predictions fetch
MAX_PREDICTION_LIMIT = 1000


class SecureConfig:
    """Encrypted key/value settings file"""

    def __init__(self, config_path: str = None, key_path: str = None):
        """
        Args:
            config_path: encrypted settings file (default ~/.agri/secure_config.enc)
            key_path: Fernet key file (default ~/.agri/.key)
        """
        base_dir = Path(os.getenv("AGRI_CONFIG_DIR", Path.home() / '.agri'))
        self.config_path = Path(config_path) if config_path else base_dir / 'secure_config.enc'
        self.key_path = Path(key_path) if key_path else base_dir / '.key'
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.key_path.parent.mkdir(parents=True, exist_ok=True)
        self.cipher = self._get_or_create_cipher()

    def _get_or_create_cipher(self) -> Fernet:
        if self.key_path.exists():
            key = self.key_path.read_bytes()
        else:
            key = Fernet.generate_key()
            self.key_path.write_bytes(key)
            if hasattr(os, 'chmod'):
                os.chmod(self.key_path, 0o600)
        return Fernet(key)

    def encrypt_value(self, value: str) -> str:
        return self.cipher.encrypt(value.encode()).decode()

    def decrypt_value(self, encrypted_value: str) -> str:
        return self.cipher.decrypt(encrypted_value.encode()).decode()

    def save_config(self, config: Dict[str, Any]):
        """Write settings, encrypting the sensitive ones"""
        stored = {}
        for key, value in config.items():
            if key in SENSITIVE_KEYS and value:
                stored[key] = {'encrypted': True, 'value': self.encrypt_value(str(value))}
            else:
                stored[key] = {'encrypted': False, 'value': value}

        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(stored, f, indent=2)

    def load_config(self) -> Dict[str, Any]:
        """Read settings; entries that fail to decrypt come back as None"""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, 'r', encoding='utf-8') as f:
            stored = json.load(f)

        config = {}
        for key, item in stored.items():
            if item.get('encrypted'):
                try:
                    config[key] = self.decrypt_value(item['value'])
                except InvalidToken:
                    logger.warning(f"Could not decrypt {key}; key file changed?")
                    config[key] = None
            else:
                config[key] = item['value']

        return config

    def get_value(self, key_name: str, fallback_env: str = None) -> Optional[str]:
        """
        Look up a setting

        Args:
            key_name: setting name (e.g. 'SUPABASE_ANON_KEY')
            fallback_env: environment variable to try when the file has no value

        Returns:
            The value, or None when neither source has it
        """
        config = self.load_config()
        if config.get(key_name):
            return config[key_name]

        return os.getenv(fallback_env or key_name) or None

    def set_value(self, key_name: str, new_value: str):
        config = self.load_config()
        config[key_name] = new_value
        self.save_config(config)
        logger.info(f"{key_name} saved to {self.config_path}")

    @staticmethod
    def mask(secret: Optional[str]) -> str:
        if not secret:
            return "NOT_SET"
        if len(secret) > 8:
            return f"{secret[:4]}...{secret[-4:]}"
        return "***"


class BackendSettings:
    """Resolved connection settings for the hosted backend"""

    def __init__(self, secure_config: SecureConfig = None):
        self.secure_config = secure_config or SecureConfig()
        self._cache: Dict[str, Optional[str]] = {}

    def _get(self, key_name: str) -> Optional[str]:
        if key_name not in self._cache:
            self._cache[key_name] = self.secure_config.get_value(key_name)
        return self._cache[key_name]

    @property
    def supabase_url(self) -> Optional[str]:
        url = os.getenv("SUPABASE_URL")
        return url.rstrip("/") if url else None

    @property
    def anon_key(self) -> Optional[str]:
        return self._get('SUPABASE_ANON_KEY')

    @property
    def db_dsn(self) -> Optional[str]:
        return self._get('SUPABASE_DB_DSN')

    @property
    def prediction_limit(self) -> int:
        try:
            limit = int(os.getenv("AGRI_PREDICTION_LIMIT", "50"))
        except ValueError:
            logger.warning("AGRI_PREDICTION_LIMIT is not an integer, using 50")
            return 50
        if limit > MAX_PREDICTION_LIMIT:
            logger.warning(f"AGRI_PREDICTION_LIMIT={limit} exceeds {MAX_PREDICTION_LIMIT}, capping")
        return min(MAX_PREDICTION_LIMIT, max(1, limit))

    @property
    def display_tz(self) -> str:
        return os.getenv("AGRI_DISPLAY_TZ", "UTC")

    def validate(self) -> Dict[str, bool]:
        url = self.supabase_url
        return {
            'url': bool(url and url.startswith(('http://', 'https://'))),
            'anon_key': bool(self.anon_key and len(self.anon_key) > 20),
            'db_dsn': bool(self.db_dsn and self.db_dsn.startswith(('postgres://', 'postgresql://'))),
        }

    def get_status_report(self) -> str:
        validation = self.validate()
        lines = ["Backend Settings", "=" * 40]
        lines.append(f"Supabase URL: {self.supabase_url or 'NOT_SET'} {'[OK]' if validation['url'] else '[FAIL]'}")
        lines.append(f"Anon key: {SecureConfig.mask(self.anon_key)} {'[OK]' if validation['anon_key'] else '[FAIL]'}")
        lines.append(f"DB DSN: {SecureConfig.mask(self.db_dsn)} {'[OK]' if validation['db_dsn'] else '[FAIL]'}")
        return "\n".join(lines)


_settings: Optional[BackendSettings] = None


def get_settings() -> BackendSettings:
    """Process-wide settings instance"""
    global _settings
    if _settings is None:
        # .env in the working directory; real environment variables win
        load_dotenv(override=False)
        _settings = BackendSettings()
    return _settings


def reset_settings():
    global _settings
    _settings = None
