import itertools

import grpc
import requests
from google.protobuf import json_format, struct_pb2

from english_auction.server.auth import JWT_HEADER
from english_auction.server.grpc_server import ERROR_CODE_KEY, SERVICE_NAME, to_struct

CHANNEL_OPTIONS = [
    ('grpc.keepalive_time_ms',       15_000),
    ('grpc.keepalive_timeout_ms',     5_000),
    ('grpc.keepalive_permit_without_calls', 1),
]


class AuctionClientError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


def _ints(value):
    """Struct numbers are doubles; turn whole numbers back into ints."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _ints(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_ints(v) for v in value]
    return value


class AuctionClient:
    def __init__(self, target: str, jwt_payload: str = None, timeout: float = 5.0):
        """
        Initialize the client.
        If target starts with http:// or https://, uses JSON-RPC.
        Otherwise, assumes gRPC at host:port.
        jwt_payload: caller identity sent with every request
        """
        self.target = target
        self.jwt_payload = jwt_payload
        self.timeout = timeout
        self._ids = itertools.count(1)
        if target.startswith('http://') or target.startswith('https://'):
            self.mode = 'jsonrpc'
            self.session = requests.Session()
        else:
            self.mode = 'grpc'
            self.channel = grpc.insecure_channel(target, options=CHANNEL_OPTIONS)

    def close(self):
        if self.mode == 'grpc':
            self.channel.close()
        else:
            self.session.close()

    def list_auctions(self):
        """
        List all auctions as [{id, startsAt, title, expiry, currency}].
        """
        if self.mode == 'grpc':
            return self._grpc('ListAuctions', {})['auctions']
        return self._jsonrpc('list_auctions', {})

    def get_auction(self, auction_id: int):
        """
        Fetch one auction with its visible bids and, once ended, its winner.
        """
        if self.mode == 'grpc':
            return self._grpc('GetAuction', {'auction_id': auction_id})
        return self._jsonrpc('get_auction', {'auction_id': auction_id})

    def add_auction(self, title: str, starts_at: str, ends_at: str, currency: str = 'VAC',
                    auction_id: int = None, auction_type: str = None):
        """
        Create an auction sold by the caller. Timestamps are ISO 8601 strings.
        """
        body = {'title': title, 'startsAt': starts_at, 'endsAt': ends_at, 'currency': currency}
        if auction_id is not None:
            body['id'] = auction_id
        if auction_type is not None:
            body['type'] = auction_type
        if self.mode == 'grpc':
            return self._grpc('AddAuction', body)
        return self._jsonrpc('add_auction', body)

    def place_bid(self, auction_id: int, amount: int):
        """
        Place a bid on the auction as the caller.
        """
        params = {'auction_id': auction_id, 'amount': amount}
        if self.mode == 'grpc':
            return self._grpc('PlaceBid', params)
        return self._jsonrpc('place_bid', params)

    def _grpc(self, method: str, body: dict):
        call = self.channel.unary_unary(
            f'/{SERVICE_NAME}/{method}',
            request_serializer=struct_pb2.Struct.SerializeToString,
            response_deserializer=struct_pb2.Struct.FromString,
        )
        metadata = ((JWT_HEADER, self.jwt_payload),) if self.jwt_payload else None
        try:
            resp = call(to_struct(body), metadata=metadata, timeout=self.timeout)
        except grpc.RpcError as e:
            trailing = dict(e.trailing_metadata() or ())
            raise AuctionClientError(trailing.get(ERROR_CODE_KEY, e.code().name), e.details()) from e
        return _ints(json_format.MessageToDict(resp))

    def _jsonrpc(self, method: str, params: dict):
        payload = {
            'jsonrpc': '2.0',
            'method': method,
            'params': params,
            'id': next(self._ids),
        }
        headers = {JWT_HEADER: self.jwt_payload} if self.jwt_payload else {}
        resp = self.session.post(self.target, json=payload, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if 'error' in data:
            error = data['error']
            raise AuctionClientError(str(error.get('data') or error.get('code')), error.get('message', ''))
        return data.get('result')
