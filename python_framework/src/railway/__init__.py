"""
Railway-Oriented Programming (ROP) framework.

Explicit, composable, functional error handling at adapter boundaries:

    from railway import Result, ErrorCode

    def read(path: Path) -> Result[bytes]:
        if not path.exists():
            return Result.failure(ErrorCode.NOT_FOUND, f"{path} not found")
        return Result.success(path.read_bytes())

    result = read(path).map(len)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]

__version__ = "1.0.0"
