"""
Shared test fixtures and builders for the rekor-tail test suite.

Signing certificates are generated at test time with cryptography's
CertificateBuilder, so every test controls exactly which identity
extensions a certificate carries. Entry envelopes are assembled the way the
log API returns them: `{<uuid>: {"logIndex": n, "body": base64(json)}}`.
"""

from __future__ import annotations

import base64
import datetime
import json
from collections.abc import Iterator, Mapping
from typing import Any

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID, ObjectIdentifier
from tenacity import wait_none

from rekor_tail.adapters.http_client import HttpEntryBatchFetcher, HttpLogSizeTracker

OIDC_ISSUER_OID = "1.3.6.1.4.1.57264.1.1"
WORKFLOW_TRIGGER_OID = "1.3.6.1.4.1.57264.1.2"
WORKFLOW_SHA_OID = "1.3.6.1.4.1.57264.1.3"
WORKFLOW_NAME_OID = "1.3.6.1.4.1.57264.1.4"
WORKFLOW_REPOSITORY_OID = "1.3.6.1.4.1.57264.1.5"
WORKFLOW_REF_OID = "1.3.6.1.4.1.57264.1.6"

GITHUB_ACTIONS_EXTENSIONS: dict[str, bytes] = {
    OIDC_ISSUER_OID: b"https://token.actions.githubusercontent.com",
    WORKFLOW_TRIGGER_OID: b"push",
    WORKFLOW_SHA_OID: b"0f2d7b1c9a4e5f6a7b8c9d0e1f2a3b4c5d6e7f80",
    WORKFLOW_NAME_OID: b"release",
    WORKFLOW_REPOSITORY_OID: b"octo-org/octo-repo",
    WORKFLOW_REF_OID: b"refs/tags/v1.2.3",
}

SAMPLE_DIGEST = "c7c8f3b5a2e1d0f9e8d7c6b5a4f3e2d1c0b9a8f7e6d5c4b3a2f1e0d9c8b7a6f5"


# ─────────────────────── Certificate Builders ───────────────────────


def make_certificate_pem(
    san: list[x509.GeneralName] | None = None,
    extensions: Mapping[str, bytes] | None = None,
) -> bytes:
    """
    Build a short-lived, self-signed PEM certificate.

    `san` becomes the subjectAltName extension (omitted when None) and every
    `extensions` item is added as an opaque extension with the raw bytes as value.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.UTC)
    builder = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "sigstore-intermediate")]))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=1))
        .not_valid_after(now + datetime.timedelta(minutes=10))
    )
    if san is not None:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=True)
    for oid, value in (extensions or {}).items():
        builder = builder.add_extension(
            x509.UnrecognizedExtension(ObjectIdentifier(oid), value), critical=False
        )
    certificate = builder.sign(key, hashes.SHA256())
    return certificate.public_bytes(serialization.Encoding.PEM)


def make_github_certificate_pem(
    subject: str = "https://github.com/octo-org/octo-repo/.github/workflows/release.yml@refs/tags/v1.2.3",
) -> bytes:
    """A certificate shaped like one issued to a GitHub Actions workflow."""
    return make_certificate_pem(
        san=[x509.UniformResourceIdentifier(subject)],
        extensions=GITHUB_ACTIONS_EXTENSIONS,
    )


def make_public_key_pem() -> bytes:
    """A bare SubjectPublicKeyInfo PEM block (signing material that is not a certificate)."""
    key = ec.generate_private_key(ec.SECP256R1())
    return key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )


# ─────────────────────── Entry Builders ───────────────────────


def b64(data: bytes | str) -> str:
    raw = data.encode() if isinstance(data, str) else data
    return base64.b64encode(raw).decode("ascii")


def make_body(
    signing_material: bytes,
    algorithm: str = "sha256",
    digest: str = SAMPLE_DIGEST,
) -> str:
    """Base64 entry body in the hashedrekord shape."""
    body = {
        "apiVersion": "0.0.1",
        "kind": "hashedrekord",
        "spec": {
            "data": {"hash": {"algorithm": algorithm, "value": digest}},
            "signature": {
                "content": b64(b"signature-bytes"),
                "publicKey": {"content": b64(signing_material)},
            },
        },
    }
    return b64(json.dumps(body))


def make_envelope(
    log_index: int,
    signing_material: bytes | None = None,
    body: str | None = None,
    uuid: str | None = None,
) -> dict[str, Any]:
    """One entry exactly as the retrieve endpoint returns it."""
    if body is None:
        body = make_body(signing_material if signing_material is not None else make_github_certificate_pem())
    return {
        uuid or f"24296fb24b8ad77a{log_index:048x}": {
            "body": body,
            "integratedTime": 1700000000 + log_index,
            "logID": "c0d23d6ad406973f9559f3ba2d1ca01f84147d8ffc5b8445c224f98b9591801d",
            "logIndex": log_index,
            "verification": {"signedEntryTimestamp": b64(b"set")},
        }
    }


# ─────────────────────── Fixtures ───────────────────────


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog.configure() a test triggered, so capture_logs sees every level."""
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def github_certificate_pem() -> bytes:
    return make_github_certificate_pem()


@pytest.fixture(scope="session")
def public_key_pem() -> bytes:
    return make_public_key_pem()


@pytest.fixture()
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tenacity's retry attempts but drop the backoff sleeps between them."""
    monkeypatch.setattr(HttpLogSizeTracker._do_log_info_request.retry, "wait", wait_none())
    monkeypatch.setattr(HttpEntryBatchFetcher._do_retrieve.retry, "wait", wait_none())
