"""
rekor_tail — follow a Rekor transparency log and print signing identities.

Polls the log size, retrieves every newly committed entry, decodes its
signing certificate and prints the identity claims embedded in it
(subject alternative name, OIDC issuer, GitHub workflow provenance) as one
JSON object per line on stdout.

Records are informational: inclusion proofs, signatures and certificate
chains are NOT verified.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
