import threading

import pytest
import requests

from english_auction.client.client import AuctionClient, AuctionClientError
from english_auction.server import grpc_server, jsonrpc_server
from english_auction.server.api import AuctionApi

from conftest import BUYER1_JWT, SELLER1_JWT

STARTS_AT = "2018-01-01T10:00:00.000Z"
ENDS_AT = "2030-01-01T10:00:00.000Z"


@pytest.fixture
def api(service, clock):
    return AuctionApi(service, clock=clock)


@pytest.fixture
def jsonrpc_url(api):
    server = jsonrpc_server.make_server(api, host='127.0.0.1', port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def grpc_target(api):
    server, port = grpc_server.make_server(api, host='127.0.0.1', port=0)
    server.start()
    yield f"127.0.0.1:{port}"
    server.stop(None)


@pytest.fixture(params=['jsonrpc', 'grpc'])
def target(request):
    fixture = 'jsonrpc_url' if request.param == 'jsonrpc' else 'grpc_target'
    return request.getfixturevalue(fixture)


def clients(target):
    return AuctionClient(target, jwt_payload=SELLER1_JWT), AuctionClient(target, jwt_payload=BUYER1_JWT)


def test_auction_flow(target):
    seller, buyer = clients(target)
    added = seller.add_auction("First auction", STARTS_AT, ENDS_AT, auction_id=1)
    assert added["$type"] == "AuctionAdded"
    assert added["auction"]["user"] == "a1"

    accepted = buyer.place_bid(1, 11)
    assert accepted["bid"] == {"auction": 1, "user": "a2", "amount": 11, "at": accepted["at"]}

    assert [a["id"] for a in buyer.list_auctions()] == [1]
    auction = buyer.get_auction(1)
    assert auction["bids"] == [{"amount": 11, "bidder": "BuyerOrSeller|a2|Buyer"}]
    assert auction["winner"] is None
    seller.close()
    buyer.close()


def test_domain_errors_are_reported(target):
    seller, buyer = clients(target)
    seller.add_auction("First auction", STARTS_AT, ENDS_AT, auction_id=1)
    with pytest.raises(AuctionClientError) as excinfo:
        seller.add_auction("First auction", STARTS_AT, ENDS_AT, auction_id=1)
    assert excinfo.value.code == "AuctionAlreadyExists"

    buyer.place_bid(1, 11)
    with pytest.raises(AuctionClientError) as excinfo:
        buyer.place_bid(1, 11)
    assert excinfo.value.code == "MustPlaceBidOverHighestBid"

    with pytest.raises(AuctionClientError) as excinfo:
        buyer.place_bid(99, 11)
    assert excinfo.value.code == "UnknownAuction"

    with pytest.raises(AuctionClientError) as excinfo:
        buyer.get_auction(99)
    assert excinfo.value.code == "NotFound"


def test_missing_identity_is_unauthorized(target):
    anonymous = AuctionClient(target)
    with pytest.raises(AuctionClientError) as excinfo:
        anonymous.add_auction("First auction", STARTS_AT, ENDS_AT)
    assert excinfo.value.code == "Unauthorized"


def test_jsonrpc_unknown_method(jsonrpc_url):
    resp = requests.post(jsonrpc_url, json={'jsonrpc': '2.0', 'method': 'close', 'params': {}, 'id': 3})
    assert resp.json()['error']['code'] == jsonrpc_server.METHOD_NOT_FOUND
    assert resp.json()['id'] == 3


def test_jsonrpc_invalid_params(jsonrpc_url):
    resp = requests.post(jsonrpc_url, json={'jsonrpc': '2.0', 'method': 'get_auction', 'params': {'x': 1}, 'id': 4})
    assert resp.json()['error']['code'] == jsonrpc_server.INVALID_PARAMS


def test_jsonrpc_malformed_body(jsonrpc_url):
    resp = requests.post(jsonrpc_url, data=b'{not json', headers={'Content-Type': 'application/json'})
    assert resp.json()['error']['code'] == jsonrpc_server.PARSE_ERROR


def test_jsonrpc_infinite_amount_is_bad_request(jsonrpc_url):
    AuctionClient(jsonrpc_url, jwt_payload=SELLER1_JWT).add_auction("First auction", STARTS_AT, ENDS_AT, auction_id=1)
    body = b'{"jsonrpc":"2.0","method":"place_bid","params":{"auction_id":1,"amount":Infinity},"id":5}'
    resp = requests.post(jsonrpc_url, data=body,
                         headers={'Content-Type': 'application/json', 'x-jwt-payload': BUYER1_JWT})
    error = resp.json()['error']
    assert error['code'] == jsonrpc_server.SERVER_ERROR
    assert error['data'] == "BadRequest"
