"""release_ci exceptions.

パイプライン各段階の例外クラスを定義します。
"""


class ReleaseCIError(Exception):
    """release_ci の全例外の基底クラス."""


class ConfigError(ReleaseCIError):
    """pipeline.yml または環境変数の値が不正."""


class SourceFetchError(ReleaseCIError):
    """ソースリポジトリの取得に失敗."""


class ReleaseLookupError(ReleaseCIError):
    """最新リリースの取得に一時的に失敗（404以外）.

    Attributes:
        status_code: HTTPステータス（接続エラー時はNone）
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MissingSecretError(ReleaseCIError):
    """署名に必要なシークレットが未設定.

    Attributes:
        names: 未設定のシークレット名
    """

    def __init__(self, names: list[str], message: str | None = None) -> None:
        self.names = names
        super().__init__(message or f"Required signing secrets are missing: {', '.join(names)}")


class BuildToolError(ReleaseCIError):
    """Gradleビルドの失敗（リトライしない）.

    Attributes:
        returncode: ビルドツールの終了コード
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)


class ReleasePublishError(ReleaseCIError):
    """リリース作成またはアセットアップロードの失敗."""
