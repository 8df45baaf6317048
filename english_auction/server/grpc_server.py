import grpc
from concurrent import futures
import logging

from google.protobuf import json_format, struct_pb2

from english_auction.server.api import AuctionApi
from english_auction.server.auth import JWT_HEADER
from english_auction.server.errors import ApiError

SERVICE_NAME = 'auction.Auction'
ERROR_CODE_KEY = 'error-code'

_STATUS_BY_CODE = {
    'BadRequest': grpc.StatusCode.INVALID_ARGUMENT,
    'Unauthorized': grpc.StatusCode.UNAUTHENTICATED,
    'NotFound': grpc.StatusCode.NOT_FOUND,
    'UnknownAuction': grpc.StatusCode.NOT_FOUND,
    'AuctionAlreadyExists': grpc.StatusCode.ALREADY_EXISTS,
}


def to_struct(value: dict) -> struct_pb2.Struct:
    message = struct_pb2.Struct()
    message.update(value)
    return message


class AuctionServicer:
    """
    Auction service over gRPC. Requests and responses are google.protobuf.Struct
    messages carrying the same JSON shapes as the JSON-RPC server.
    The caller identity travels in the x-jwt-payload metadata entry.
    """

    def __init__(self, api: AuctionApi):
        self.api = api

    def ListAuctions(self, request, context):
        return self._call(context, lambda: {'auctions': self.api.list_auctions()})

    def GetAuction(self, request, context):
        body = json_format.MessageToDict(request)
        return self._call(context, lambda: self.api.get_auction(body.get('auction_id')))

    def AddAuction(self, request, context):
        body = json_format.MessageToDict(request)
        return self._call(context, lambda: self.api.add_auction(_jwt_payload(context), body))

    def PlaceBid(self, request, context):
        body = json_format.MessageToDict(request)
        return self._call(
            context, lambda: self.api.place_bid(_jwt_payload(context), body.get('auction_id'), body))

    def _call(self, context, fn):
        try:
            return to_struct(fn())
        except ApiError as e:
            status = _STATUS_BY_CODE.get(e.code, grpc.StatusCode.FAILED_PRECONDITION)
            context.set_trailing_metadata(((ERROR_CODE_KEY, e.code),))
            context.abort(status, e.message)
        except Exception:
            logging.exception("gRPC request failed")
            context.abort(grpc.StatusCode.INTERNAL, 'Internal error')


def _jwt_payload(context):
    return dict(context.invocation_metadata()).get(JWT_HEADER)


def _unary(behavior):
    return grpc.unary_unary_rpc_method_handler(
        behavior,
        request_deserializer=struct_pb2.Struct.FromString,
        response_serializer=struct_pb2.Struct.SerializeToString,
    )


def add_AuctionServicer_to_server(servicer: AuctionServicer, server):
    handlers = {
        'ListAuctions': _unary(servicer.ListAuctions),
        'GetAuction': _unary(servicer.GetAuction),
        'AddAuction': _unary(servicer.AddAuction),
        'PlaceBid': _unary(servicer.PlaceBid),
    }
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))


def make_server(api: AuctionApi, host: str = '[::]', port: int = 50051, max_workers: int = 10):
    """
    Build (but do not start) the gRPC server.
    Returns (server, bound_port); pass port 0 to bind an ephemeral port.
    """
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    add_AuctionServicer_to_server(AuctionServicer(api), server)
    bound_port = server.add_insecure_port(f'{host}:{port}')
    return server, bound_port


def serve(api: AuctionApi, host: str = '[::]', port: int = 50051, max_workers: int = 10):
    server, bound_port = make_server(api, host, port, max_workers)
    logging.info(f"Starting Auction gRPC server on port {bound_port}")
    server.start()
    server.wait_for_termination()
