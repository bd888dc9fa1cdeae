from __future__ import annotations


class ModmapError(Exception):
    """Base class for every failure that terminates an invocation."""


class MalformedInputError(ModmapError, ValueError):
    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class ConflictError(ModmapError):
    def __init__(
        self,
        name: str,
        existing_path: str,
        new_path: str,
        existing_origin: str | None = None,
        new_origin: str | None = None,
    ) -> None:
        self.name = name
        self.existing_path = existing_path
        self.new_path = new_path
        self.existing_origin = existing_origin
        self.new_origin = new_origin
        super().__init__(self._describe())

    def _describe(self) -> str:
        existing = self.existing_path
        if self.existing_origin:
            existing = f"{existing} (from {self.existing_origin})"
        new = self.new_path
        if self.new_origin:
            new = f"{new} (from {self.new_origin})"
        return f"conflicting BMI paths for module '{self.name}': {existing} vs {new}"


class UnresolvedDependencyError(ModmapError):
    def __init__(self, name: str, kind: str | None = None) -> None:
        self.name = name
        self.kind = kind
        label = kind or "module"
        super().__init__(f"required {label} '{name}' is not in the module registry")


class UnsupportedCompilerError(ModmapError, ValueError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unsupported compiler: {value!r} (expected clang, gcc or msvc)")


class ModmapIOError(ModmapError):
    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        reason = cause.strerror or str(cause)
        super().__init__(f"{path}: {reason}")
