from typing import Optional

from vulpes_container.domain import IIdentifierTransform


class InterfaceSuffixTransform(IIdentifierTransform):
    """Maps ``<Name>Interface`` onto ``<Name>``.

    The last dotted component must keep a non-empty name once the suffix is
    stripped; member identifiers (``Type::method``) are never transformed.

    Example:
        >>> InterfaceSuffixTransform().transform("app.mail.MailerInterface")
        'app.mail.Mailer'
    """

    def __init__(self, suffix: str = "Interface", member_separator: str = "::") -> None:
        self._suffix = suffix
        self._separator = member_separator

    @property
    def suffix(self) -> str:
        return self._suffix

    def transform(self, identifier: str) -> Optional[str]:
        if self._separator in identifier or not identifier.endswith(self._suffix):
            return None
        stripped = identifier[: -len(self._suffix)]
        if not stripped or stripped.endswith("."):
            return None
        return stripped
