"""Error types shared by the erasure-coding stream layer."""


class EestreamError(Exception):
    """Error raised by the erasure-coding stream layer."""

    def __str__(self) -> str:
        return f"eestream: {super().__str__()}"