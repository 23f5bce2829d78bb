# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for the knowledge service client.

- KnowledgeServiceError: Base exception, also raised for connection failures
- KnowledgeAPIError: The API answered with an error status
"""


class KnowledgeServiceError(Exception):
    """Base exception for knowledge service errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class KnowledgeAPIError(KnowledgeServiceError):
    """Error status returned by the knowledge service API.

    Attributes:
        status_code: HTTP status code from API response.
        response_body: Raw response body.
    """

    def __init__(
        self,
        status_code: int,
        response_body: str = "",
        details: dict | None = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(
            f"Open Notebook API error: {status_code} - {response_body}",
            details,
        )
