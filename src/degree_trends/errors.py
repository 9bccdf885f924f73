from __future__ import annotations

from typing import Any, Iterable


class DegreeTrendsError(ValueError):
    """Base error carrying the pipeline stage and the offending key."""

    def __init__(self, message: str, *, stage: str, key: Any = None) -> None:
        self.stage = stage
        self.key = key
        prefix = f"[{stage}]" if key is None else f"[{stage}:{key}]"
        super().__init__(f"{prefix} {message}")


class SchemaError(DegreeTrendsError):
    pass


class ConflictError(DegreeTrendsError):
    def __init__(self, collisions: Iterable[tuple[Any, Any]], *, stage: str = "pivot") -> None:
        self.collisions = sorted(set(collisions), key=lambda item: (str(item[0]), str(item[1])))
        listed = ", ".join(f"({row!r}, {col!r})" for row, col in self.collisions)
        super().__init__(
            f"duplicate cells after aggregation: {listed}",
            stage=stage,
            key=self.collisions[0] if self.collisions else None,
        )


class BindingMismatchError(DegreeTrendsError):
    def __init__(
        self,
        *,
        missing_bindings: Iterable[str] = (),
        orphan_bindings: Iterable[str] = (),
        duplicate_bindings: Iterable[str] = (),
    ) -> None:
        self.missing_bindings = sorted(set(missing_bindings))
        self.orphan_bindings = sorted(set(orphan_bindings))
        self.duplicate_bindings = sorted(set(duplicate_bindings))
        parts: list[str] = []
        if self.missing_bindings:
            parts.append(f"rows without a chart: {', '.join(self.missing_bindings)}")
        if self.orphan_bindings:
            parts.append(f"charts without a row: {', '.join(self.orphan_bindings)}")
        if self.duplicate_bindings:
            parts.append(f"categories bound twice: {', '.join(self.duplicate_bindings)}")
        super().__init__("; ".join(parts) or "binding mismatch", stage="merge")


class RenderError(DegreeTrendsError):
    def __init__(self, category: str, message: str, *, stage: str = "render") -> None:
        self.category = category
        super().__init__(message, stage=stage, key=category)
