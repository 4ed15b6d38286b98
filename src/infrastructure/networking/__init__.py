"""
Networking Infrastructure

Network communication components:
- http: REST transport, nonce sequencing and HMAC request signing
"""
