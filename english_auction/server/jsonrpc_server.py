import inspect
import json
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import logging

from english_auction.server.api import AuctionApi
from english_auction.server.auth import JWT_HEADER
from english_auction.server.errors import ApiError

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000


def rpc_methods(api: AuctionApi) -> dict:
    """Map JSON-RPC method names to callables taking the identity payload first."""
    return {
        'list_auctions': lambda jwt_payload: api.list_auctions(),
        'get_auction': lambda jwt_payload, auction_id: api.get_auction(auction_id),
        'add_auction': lambda jwt_payload, **body: api.add_auction(jwt_payload, body),
        'place_bid': lambda jwt_payload, auction_id, amount=None:
            api.place_bid(jwt_payload, auction_id, {'amount': amount}),
    }


class JSONRPCHandler(BaseHTTPRequestHandler):
    rpc_methods = {}

    def do_POST(self):
        length = int(self.headers.get('Content-Length', 0))
        try:
            data = json.loads(self.rfile.read(length))
        except ValueError:
            self._reply({'jsonrpc': '2.0', 'error': {'code': PARSE_ERROR, 'message': 'Invalid JSON'}, 'id': None})
            return
        if not isinstance(data, dict):
            data = {}
        self._reply(self._dispatch(data, self.headers.get(JWT_HEADER)))

    def _dispatch(self, data: dict, jwt_payload) -> dict:
        method = data.get('method')
        params = data.get('params') or {}
        request_id = data.get('id')
        logging.debug(f"JSON-RPC {method} id={request_id}")

        fn = self.rpc_methods.get(method)
        if fn is None:
            error = {'code': METHOD_NOT_FOUND, 'message': f'Method {method} not found'}
            return {'jsonrpc': '2.0', 'error': error, 'id': request_id}
        try:
            if not isinstance(params, dict):
                raise TypeError('params must be an object')
            inspect.signature(fn).bind(jwt_payload, **params)
        except TypeError as e:
            error = {'code': INVALID_PARAMS, 'message': str(e)}
            return {'jsonrpc': '2.0', 'error': error, 'id': request_id}

        try:
            result = fn(jwt_payload, **params)
        except ApiError as e:
            error = {'code': SERVER_ERROR, 'message': e.message, 'data': e.code}
            return {'jsonrpc': '2.0', 'error': error, 'id': request_id}
        except Exception:
            logging.exception(f"JSON-RPC {method} failed")
            error = {'code': INTERNAL_ERROR, 'message': 'Internal error'}
            return {'jsonrpc': '2.0', 'error': error, 'id': request_id}
        return {'jsonrpc': '2.0', 'result': result, 'id': request_id}

    def _reply(self, response: dict):
        resp = json.dumps(response).encode()
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(resp)))
        self.end_headers()
        self.wfile.write(resp)

    def log_message(self, format, *args):
        logging.debug("%s - %s", self.address_string(), format % args)


def make_server(api: AuctionApi, host: str = '', port: int = 8080) -> ThreadingHTTPServer:
    """
    Build (but do not start) a JSON-RPC server; each request runs on its own thread.
    Pass port 0 to bind an ephemeral port.
    """
    handler = type('AuctionJSONRPCHandler', (JSONRPCHandler,), {'rpc_methods': rpc_methods(api)})
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def serve(api: AuctionApi, host: str = '', port: int = 8080):
    server = make_server(api, host, port)
    logging.info(f"Starting JSON-RPC server on port {server.server_address[1]}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
