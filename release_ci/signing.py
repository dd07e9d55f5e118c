"""署名用シークレットとkeystoreファイルの扱い."""

from __future__ import annotations

import base64
import binascii
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Mapping

from loguru import logger

from release_ci.exceptions import MissingSecretError

SECRET_ENV_VARS = {
    "keystore_base64": "KEYSTORE_BASE64",
    "store_password": "KEYSTORE_PASSWORD",
    "key_alias": "KEY_ALIAS",
    "key_password": "KEY_PASSWORD",
}


@dataclass(frozen=True)
class SigningSecrets:
    keystore_base64: str = field(default="", repr=False)
    store_password: str = field(default="", repr=False)
    key_alias: str = field(default="", repr=False)
    key_password: str = field(default="", repr=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> SigningSecrets:
        return cls(**{attr: environ.get(env, "") for attr, env in SECRET_ENV_VARS.items()})

    def missing(self) -> list[str]:
        return [env for attr, env in SECRET_ENV_VARS.items() if not getattr(self, attr)]

    def require(self) -> None:
        """未設定のシークレットがあればMissingSecretErrorを送出."""
        missing = self.missing()
        if missing:
            raise MissingSecretError(missing)


def decode_keystore(secrets: SigningSecrets, dest: Path) -> Path:
    """KEYSTORE_BASE64をデコードしてkeystoreファイルを書き出す.

    Args:
        secrets: 署名用シークレット
        dest: 出力先パス

    Returns:
        書き出したkeystoreのパス

    Raises:
        MissingSecretError: シークレット未設定、またはデコード結果が不正
    """
    logger.info("Decoding signing keystore...")
    if not secrets.keystore_base64:
        raise MissingSecretError(["KEYSTORE_BASE64"], "KEYSTORE_BASE64 secret is not set")

    try:
        data = base64.b64decode(secrets.keystore_base64, validate=False)
    except (binascii.Error, ValueError) as e:
        raise MissingSecretError(["KEYSTORE_BASE64"], f"KEYSTORE_BASE64 is not valid base64: {e}") from e
    if not data:
        raise MissingSecretError(["KEYSTORE_BASE64"], "KEYSTORE_BASE64 decoded to an empty keystore")

    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)
    dest.chmod(0o600)
    logger.info("Keystore decoded successfully")
    return dest


@contextmanager
def keystore_file(secrets: SigningSecrets, dest: Path) -> Iterator[Path]:
    """keystoreを一時的に書き出し、終了時に必ず削除する."""
    path = decode_keystore(secrets, dest)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.info("Keystore cleaned up")
