from dataclasses import dataclass


class RuinSimError(Exception):
    pass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigError(RuinSimError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"Configuration error: {self.message}"


class ConfigValidationError(RuinSimError):
    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        rendered = "\n".join(f"- {item}" for item in errors)
        super().__init__(f"Simulation config validation failed:\n{rendered}")

    @property
    def fields(self) -> list[str]:
        return [item.field for item in self.errors]


class ExportError(RuinSimError):
    def __init__(self, message: str, path: str = "") -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        path_info = f" to {self.path}" if self.path else ""
        return f"Export failed{path_info}: {self.message}"
