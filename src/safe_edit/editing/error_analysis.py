"""Map unexpected exceptions onto the reported error taxonomy."""

from safe_edit.exceptions import AccessDeniedError, SourceNotFoundError
from safe_edit.models.result_models import ErrorDetails, ErrorType, Severity


def file_not_found_details(file_path: str) -> ErrorDetails:
    return ErrorDetails(
        type=ErrorType.FILE_NOT_FOUND,
        root_cause=f"The file '{file_path}' could not be found in the filesystem.",
        suggestions=[
            "Verify the file path is correct",
            "Check if the file was moved or deleted",
            "Ensure you have the correct working directory",
            "Create the file first if it should exist",
        ],
        severity=Severity.CRITICAL,
    )


def classify_error(error: BaseException, file_path: str) -> ErrorDetails:
    """Build ErrorDetails for an exception raised while handling a file.

    Args:
        error: The exception that was raised.
        file_path: The file being processed when it was raised.

    Returns:
        ErrorDetails with type, root cause, severity and suggested fixes.
    """
    if isinstance(error, (SourceNotFoundError, FileNotFoundError)):
        return file_not_found_details(file_path)

    if isinstance(error, (AccessDeniedError, PermissionError)):
        return ErrorDetails(
            type=ErrorType.PERMISSION_DENIED,
            root_cause=(
                f"Access denied when trying to edit '{file_path}'. "
                "The file or directory permissions prevent access."
            ),
            suggestions=[
                "Check file permissions with `ls -la`",
                "Ensure you have write permissions to the file",
                "Check if the file is being used by another process",
                "Try running with appropriate privileges if needed",
            ],
            severity=Severity.CRITICAL,
        )

    if isinstance(error, UnicodeError):
        return ErrorDetails(
            type=ErrorType.ENCODING_ERROR,
            root_cause=(
                f"File encoding issue when processing '{file_path}'. "
                "The file may contain non-UTF-8 characters."
            ),
            suggestions=[
                "Check if the file uses a different encoding (UTF-16, Latin-1, etc.)",
                "Convert the file to UTF-8 encoding",
                "Handle binary files separately",
            ],
            severity=Severity.MEDIUM,
        )

    if isinstance(error, SyntaxError):
        return ErrorDetails(
            type=ErrorType.SYNTAX_ERROR,
            root_cause=(
                f"Syntax error reported when processing '{file_path}': {error}"
            ),
            suggestions=[
                "Check the file syntax in your editor",
                "Fix any syntax errors before attempting edits",
                "Verify the file extension matches the content type",
            ],
            severity=Severity.HIGH,
        )

    return ErrorDetails(
        type=ErrorType.UNKNOWN,
        root_cause=(
            f"An unexpected error occurred while processing '{file_path}': {error}"
        ),
        suggestions=[
            "Check the error message for specific details",
            "Verify the file is accessible and not corrupted",
            "Try the operation again",
            "Check system resources (disk space, memory)",
        ],
        severity=Severity.HIGH,
    )
