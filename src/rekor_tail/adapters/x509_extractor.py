"""
X.509 extension extractor adapter — PEM unwrapping + identity field mapping.

Adapter layer — implements the CertificateExtractor port using:
  - asn1crypto: PEM unarmoring (exposes the block label, so bare public keys
    can be told apart from certificates before any DER parsing) and a lazy,
    per-extension walk of the TBS certificate
  - cryptography (PyCA): X.509 structure validation and RFC 4514 rendering

Pipeline:
  certificate bytes from the entry
    → asn1crypto: pem.unarmor() → (label, headers, der)
    → label != "CERTIFICATE" → SkippedEntry (a filter, not an error)
    → cryptography: x509.load_der_x509_certificate(der)
    → asn1crypto: walk tbs_certificate.extensions one by one,
      map known OIDs to ExtensionRecord fields

Extensions are read one at a time, so a malformed extension outside the
table below never costs the record its identity fields. A SAN that cannot
be parsed leaves Subject unset.

Extension table:
  2.5.29.17               subjectAltName → subject (last general name wins)
  1.3.6.1.4.1.57264.1.1   OIDC issuer
  1.3.6.1.4.1.57264.1.2   GitHub workflow trigger
  1.3.6.1.4.1.57264.1.3   GitHub workflow SHA
  1.3.6.1.4.1.57264.1.4   GitHub workflow name
  1.3.6.1.4.1.57264.1.5   GitHub workflow repository
  1.3.6.1.4.1.57264.1.6   GitHub workflow ref

The 57264.1.x values are raw UTF-8 bytes (no inner DER wrapping). A value
that is not valid UTF-8 leaves its field unset.
"""

from __future__ import annotations

from typing import Any

import structlog
from asn1crypto import pem
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.x509.oid import ObjectIdentifier
from railway import ErrorCode
from railway.result import Result

from rekor_tail.domain.models import DecodedEntry, ExtensionRecord, SkippedEntry

log = structlog.get_logger()

CERTIFICATE_LABEL = "CERTIFICATE"

SUBJECT_ALT_NAME_OID = "2.5.29.17"

PROVENANCE_EXTENSIONS: dict[str, str] = {
    "1.3.6.1.4.1.57264.1.1": "oidc_issuer",
    "1.3.6.1.4.1.57264.1.2": "github_workflow_trigger",
    "1.3.6.1.4.1.57264.1.3": "github_workflow_sha",
    "1.3.6.1.4.1.57264.1.4": "github_workflow_name",
    "1.3.6.1.4.1.57264.1.5": "github_workflow_repository",
    "1.3.6.1.4.1.57264.1.6": "github_workflow_ref",
}


# ─────────────────────── Field Decoding ───────────────────────


def _rfc4514(name: asn1_x509.Name) -> str:
    rdns = [
        x509.RelativeDistinguishedName(
            x509.NameAttribute(ObjectIdentifier(attribute["type"].dotted), attribute["value"].native)
            for attribute in rdn
        )
        for rdn in name.chosen
    ]
    return x509.Name(rdns).rfc4514_string()


def _general_name_text(name: asn1_x509.GeneralName) -> str:
    """String form for email/URI/DNS names, a generic textual form for the rest."""
    match name.name:
        case "rfc822_name" | "uniform_resource_identifier" | "dns_name" | "ip_address":
            return name.native
        case "directory_name":
            return _rfc4514(name.chosen)
        case "registered_id":
            return name.chosen.dotted
        case "other_name":
            return f"{name.chosen['type_id'].dotted}:{name.chosen['value'].parsed.dump().hex()}"
        case _:
            return str(name.native)


def _subject(extension: asn1_x509.Extension) -> str | None:
    # Each general name overwrites the previous one; only the last is kept.
    subject = None
    for name in extension["extn_value"].parsed:
        subject = _general_name_text(name)
    return subject


def _utf8(raw: bytes) -> str | None:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _extension_fields(extensions: asn1_x509.Extensions, log_index: int) -> dict[str, Any]:
    """Map every recognised extension onto its ExtensionRecord attribute."""
    fields: dict[str, Any] = {}
    for extension in extensions:
        oid = extension["extn_id"].dotted
        if oid == SUBJECT_ALT_NAME_OID:
            parsed = Result.from_computation(
                lambda: _subject(extension),
                ErrorCode.CERTIFICATE_PARSE_ERROR,
                "Unparseable subjectAltName",
            ).peek_failure(
                lambda error: log.debug("extension.san_unparseable", log_index=log_index, error=error.detail())
            )
            if parsed.is_success() and parsed.value() is not None:
                fields["subject"] = parsed.value()
            continue

        attribute = PROVENANCE_EXTENSIONS.get(oid)
        if attribute is None:
            continue
        text = _utf8(extension["extn_value"].contents)
        if text is None:
            log.debug("extension.not_utf8", log_index=log_index, oid=oid)
            continue
        fields[attribute] = text
    return fields


# ─────────────────────── Public Extractor Class ───────────────────────


class X509ExtensionExtractor:
    """
    Turn the signing material of a decoded entry into an ExtensionRecord.

    Implements the CertificateExtractor port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def extract(self, entry: DecodedEntry) -> Result[ExtensionRecord | SkippedEntry]:
        """
        Extraction pipeline:
          1. Unarmor the PEM block (asn1crypto)
          2. Skip anything not labelled CERTIFICATE
          3. Validate the DER certificate structure (cryptography)
          4. Walk the extensions one by one (asn1crypto)
          5. Build the ExtensionRecord

        Returns Result.failure(CERTIFICATE_PARSE_ERROR, ...) when the PEM
        envelope or the certificate structure cannot be decoded.
        """
        return Result.from_computation(
            lambda: pem.unarmor(entry.certificate),
            ErrorCode.CERTIFICATE_PARSE_ERROR,
            "Signing material is not a PEM block",
        ).flat_map(lambda block: self._from_pem_block(entry, block[0], block[2]))

    def _from_pem_block(
        self, entry: DecodedEntry, label: str, der: bytes
    ) -> Result[ExtensionRecord | SkippedEntry]:
        if label != CERTIFICATE_LABEL:
            return Result.success(SkippedEntry(log_index=entry.log_index, reason=f"PEM label {label!r}"))

        return Result.from_computation(
            lambda: self._do_extract(entry, der),
            ErrorCode.CERTIFICATE_PARSE_ERROR,
            "Failed to parse X.509 certificate",
        )

    @staticmethod
    def _do_extract(entry: DecodedEntry, der: bytes) -> ExtensionRecord:
        """Internal extraction — may raise (caught by from_computation)."""
        x509.load_der_x509_certificate(der)
        tbs = asn1_x509.Certificate.load(der)["tbs_certificate"]
        fields = _extension_fields(tbs["extensions"], entry.log_index)
        return ExtensionRecord(log_index=entry.log_index, hash=entry.hash, **fields)
