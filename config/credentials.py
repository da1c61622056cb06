"""
SISREG 凭证存储
按用户保存远程服务地址与账号；未保存时回退到环境变量中的默认凭证

凭证仅保存在进程内存中，重启后需重新配置。

作者: Tom
创建时间: 2025-11-18T16:40:12+08:00
"""

from threading import Lock
from typing import Dict, Optional

from loguru import logger

from config.settings import Settings, settings as default_settings
from sisreg.models import SisregCredentials


CONFIG_NOT_FOUND_MESSAGE = "Configuração não encontrada. Configure suas credenciais primeiro."


class CredentialsNotConfiguredError(Exception):
    """当前用户没有可用的 SISREG 凭证"""

    def __init__(self, message: str = CONFIG_NOT_FOUND_MESSAGE):
        super().__init__(message)


class CredentialStore:
    """进程内凭证存储（按用户ID隔离）"""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or default_settings
        self._items: Dict[str, SisregCredentials] = {}
        self._lock = Lock()

    def _env_credentials(self) -> Optional[SisregCredentials]:
        if not self._settings.has_default_credentials():
            return None
        return SisregCredentials(
            base_url=self._settings.sisreg_base_url,
            username=self._settings.sisreg_username,
            password=self._settings.sisreg_password,
        )

    def get(self, user_id: str) -> Optional[SisregCredentials]:
        """获取用户凭证，未保存时回退到环境默认值"""
        with self._lock:
            stored = self._items.get(user_id)
        if stored is not None:
            return stored
        return self._env_credentials()

    def require(self, user_id: str) -> SisregCredentials:
        creds = self.get(user_id)
        if creds is None:
            raise CredentialsNotConfiguredError()
        return creds

    def save(self, user_id: str, credentials: SisregCredentials) -> SisregCredentials:
        with self._lock:
            self._items[user_id] = credentials
        logger.info(f"CredentialStore: 用户 {user_id} 凭证已保存（{credentials.base_url}）")
        return credentials

    def delete(self, user_id: str) -> bool:
        """删除用户保存的凭证；返回是否存在过"""
        with self._lock:
            existed = self._items.pop(user_id, None) is not None
        if existed:
            logger.info(f"CredentialStore: 用户 {user_id} 凭证已删除")
        return existed

    def is_stored(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._items


credential_store = CredentialStore()


__all__ = [
    "CredentialStore",
    "CredentialsNotConfiguredError",
    "CONFIG_NOT_FOUND_MESSAGE",
    "credential_store",
]
