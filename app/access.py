import hmac
import os
from dataclasses import dataclass

from app.persistence import KeyValueStore

ACCESS_CODE = os.getenv("ACCESS_CODE", "change-this-code")
ACCESS_CODE_KEY = "APP_ACCESS_CODE"
MIN_CODE_LENGTH = 4

ACCESS_DENIED_MESSAGE = "Code d'accès incorrect. Veuillez réessayer."


@dataclass(frozen=True)
class CodeChangeResult:
    success: bool
    message: str


class AccessGate:
    """Single shared access code, stored alongside the saved notes."""

    def __init__(self, store: KeyValueStore, default_code: str = ACCESS_CODE) -> None:
        self._store = store
        self._default_code = default_code

    @property
    def code(self) -> str:
        return self._store.get(ACCESS_CODE_KEY) or self._default_code

    def check(self, code: str) -> bool:
        return hmac.compare_digest(code.encode(), self.code.encode())

    def change(self, current_code: str, new_code: str) -> CodeChangeResult:
        if not self.check(current_code):
            return CodeChangeResult(False, "Le code d'accès actuel est incorrect.")
        if not new_code or len(new_code) < MIN_CODE_LENGTH:
            return CodeChangeResult(
                False, f"Le nouveau code doit contenir au moins {MIN_CODE_LENGTH} caractères."
            )
        self._store.set(ACCESS_CODE_KEY, new_code)
        return CodeChangeResult(True, "Code d'accès mis à jour avec succès !")


__all__ = [
    "ACCESS_CODE",
    "ACCESS_CODE_KEY",
    "MIN_CODE_LENGTH",
    "ACCESS_DENIED_MESSAGE",
    "CodeChangeResult",
    "AccessGate",
]
