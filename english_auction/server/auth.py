import base64
import binascii
import json

from english_auction.common.models import BuyerOrSeller, Support, User
from english_auction.server.errors import Unauthorized

JWT_HEADER = "x-jwt-payload"


def decode_user(payload: str) -> User:
    """
    Decode the base64 JSON identity payload placed in front of the service
    by the authenticating proxy, e.g. {"sub": "a1", "name": "Test", "u_typ": "0"}.
    u_typ "0" is a buyer/seller, "1" is support staff.
    """
    if not payload:
        raise Unauthorized("missing identity")
    try:
        claims = json.loads(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError) as e:
        raise Unauthorized("malformed identity") from e
    if not isinstance(claims, dict):
        raise Unauthorized("malformed identity")

    sub = claims.get("sub")
    u_typ = claims.get("u_typ")
    if not isinstance(sub, str) or not sub:
        raise Unauthorized("identity has no subject")
    if u_typ == "0":
        name = claims.get("name")
        if not isinstance(name, str):
            raise Unauthorized("identity has no name")
        return BuyerOrSeller(id=sub, name=name)
    if u_typ == "1":
        return Support(id=sub)
    raise Unauthorized(f"unknown user type {u_typ!r}")
