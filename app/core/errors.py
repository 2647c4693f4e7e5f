# app/core/errors.py

"""
Taxonomia de erros do orquestrador.

Cada erro carrega o status HTTP que a camada de rotas devolve.
"""

from __future__ import annotations

from typing import Optional


class OrchestrationError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(OrchestrationError):
    status_code = 400


class TargetUnresolvable(OrchestrationError):
    status_code = 400

    def __init__(self, device_id: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"unable to find device {device_id}")
        self.device_id = device_id


class SourceNotFound(TargetUnresolvable):
    def __init__(self, device_id: str) -> None:
        super().__init__(device_id, "unable to find source")


class DeviceOperationFailed(OrchestrationError):
    status_code = 500

    def __init__(self, device_id: str, operation: str, program_id: object = None) -> None:
        detail = f"{operation} failed on device {device_id}"
        if program_id is not None:
            detail += f" (program {program_id})"
        super().__init__(detail)
        self.device_id = device_id
        self.operation = operation
        self.program_id = program_id


class MetadataLookupFailed(OrchestrationError):
    def __init__(self, device_name: Optional[str]) -> None:
        super().__init__(f"no wicket metadata for {device_name!r}")
        self.device_name = device_name
