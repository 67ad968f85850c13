"""
Peer certificate capture.

Gemini servers overwhelmingly use self-signed certificates, so the transport
never verifies them. Instead the leaf certificate is captured as-is and
exposed here (PEM plus the parsed fields) so callers can pin or display it.
"""

import hashlib
import ssl
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from gemwalk.core import setup_logger

logger = setup_logger("gemwalk.certificates")


@dataclass(frozen=True)
class PeerCertificate:
    """
    Immutable snapshot of the server's leaf certificate.
    Invariant: der and pem are always present; parsed fields are None when
    the certificate could not be decoded.
    """
    der: bytes = field(repr=False)
    pem: str = field(repr=False)
    fingerprint: str
    subject: Optional[str] = None
    issuer: Optional[str] = None
    common_name: Optional[str] = None
    serial_number: Optional[int] = None
    not_before: Optional[datetime] = None
    not_after: Optional[datetime] = None
    dns_names: Tuple[str, ...] = ()

    @classmethod
    def from_der(cls, der: bytes) -> "PeerCertificate":
        pem = ssl.DER_cert_to_PEM_cert(der)
        try:
            cert = x509.load_der_x509_certificate(der)
        except ValueError as exc:
            logger.warning(f"Peer certificate could not be parsed: {exc}")
            return cls(der=der, pem=pem, fingerprint=hashlib.sha256(der).hexdigest())

        common_names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
            dns_names = tuple(san.value.get_values_for_type(x509.DNSName))
        except x509.ExtensionNotFound:
            dns_names = ()

        return cls(
            der=der,
            pem=pem,
            fingerprint=cert.fingerprint(hashes.SHA256()).hex(),
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            common_name=str(common_names[0].value) if common_names else None,
            serial_number=cert.serial_number,
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
            dns_names=dns_names,
        )

    def is_expired(self, now: Optional[datetime] = None) -> Optional[bool]:
        if self.not_after is None or self.not_before is None:
            return None
        now = now or datetime.now(self.not_after.tzinfo)
        return not (self.not_before <= now <= self.not_after)

    def matches_host(self, host: str) -> bool:
        """True if host is covered by a SAN DNS name (or the CN when no SAN is present)."""
        names = self.dns_names or ((self.common_name,) if self.common_name else ())
        host = host.lower().rstrip(".")
        for name in names:
            name = name.lower().rstrip(".")
            if name == host:
                return True
            # Wildcards cover exactly one left-most label
            if name.startswith("*.") and "." in host and host.split(".", 1)[1] == name[2:]:
                return True
        return False

    def info(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "issuer": self.issuer,
            "common_name": self.common_name,
            "serial_number": self.serial_number,
            "not_before": self.not_before.isoformat() if self.not_before else None,
            "not_after": self.not_after.isoformat() if self.not_after else None,
            "dns_names": list(self.dns_names),
            "sha256_fingerprint": self.fingerprint,
        }
