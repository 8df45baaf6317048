import argparse
import logging
import os

from english_auction.auction.service import AuctionServiceCore
from english_auction.server.api import AuctionApi
from english_auction.server.grpc_server import serve as serve_grpc
from english_auction.server.jsonrpc_server import serve as serve_jsonrpc


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='English auction node backed by an append-only event log')
    parser.add_argument('--mode', choices=['grpc', 'jsonrpc'], default='jsonrpc',
                        help='Server mode: gRPC or JSON-RPC (default: jsonrpc)')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind the server')
    parser.add_argument('--port', type=int, default=_env_int('PORT', 8080),
                        help='Port for the auction API (default: $PORT or 8080)')
    parser.add_argument('--events-file', default=os.environ.get('EVENTS_FILE', 'tmp/events.jsonl'),
                        help='Event log path (default: $EVENTS_FILE or tmp/events.jsonl)')
    parser.add_argument('--log-level', default=os.environ.get('LOGLEVEL', 'INFO').upper(),
                        help='Logging level (default: $LOGLEVEL or INFO)')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format='%(asctime)s %(levelname)s %(message)s')

    # Replay the event log; a corrupt log aborts startup
    service = AuctionServiceCore.initialize(args.events_file)
    api = AuctionApi(service)

    if args.mode == 'grpc':
        serve_grpc(api, host=args.host, port=args.port)
    else:
        serve_jsonrpc(api, host=args.host, port=args.port)


if __name__ == '__main__':
    main()
