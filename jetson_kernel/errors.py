from __future__ import annotations


class JetsonKernelError(Exception):
    """Base class for every fatal condition reported by the CLIs."""


class UsageError(JetsonKernelError):
    pass


class ConfigError(JetsonKernelError):
    pass


class PrivilegeError(JetsonKernelError):
    pass


class CommandError(JetsonKernelError):
    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class VersionParseError(JetsonKernelError):
    pass


class DownloadError(JetsonKernelError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChecksumMismatchError(JetsonKernelError):
    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(f"Checksum mismatch for {path}: expected {expected or '<empty>'}, got {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class ExtractionError(JetsonKernelError):
    pass


class BackupCollisionError(JetsonKernelError):
    pass


class BuildError(JetsonKernelError):
    pass
