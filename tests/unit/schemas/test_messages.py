"""Tests for signaling message decoding and routing targets."""

import json

import pytest

from signal_relay.schemas.messages import (
    ConnectionRequest,
    ConnectionResponse,
    PeerStateChange,
    RTCAnswer,
    RTCCandidate,
    RTCOffer,
    User,
    UserList,
    Welcome,
    decode_message,
    routing_target,
)


class TestDecodeMessage:
    """Tests for decode_message function."""

    @pytest.mark.parametrize(
        "payload, expected_class",
        [
            ({"type": "Welcome", "user_id": 1}, Welcome),
            ({"type": "UserList", "users": []}, UserList),
            (
                {
                    "type": "PeerStateChange",
                    "from_id": 1,
                    "to_id": 2,
                    "state": "connected",
                },
                PeerStateChange,
            ),
            ({"type": "ConnectionRequest", "to_id": 2}, ConnectionRequest),
            ({"type": "ConnectionResponse", "from_id": 1}, ConnectionResponse),
            ({"type": "RTCOffer", "to_id": 2, "offer": {}}, RTCOffer),
            ({"type": "RTCAnswer", "to_id": 2, "answer": {}}, RTCAnswer),
            (
                {"type": "RTCCandidate", "to_id": 2, "candidate": {}},
                RTCCandidate,
            ),
        ],
    )
    def test_decodes_each_variant(self, payload, expected_class):
        """Test the `type` field selects the variant."""
        message = decode_message(json.dumps(payload))

        assert isinstance(message, expected_class)

    def test_opaque_payload_untouched(self):
        """Test SDP payloads are carried as arbitrary JSON."""
        offer = {"type": "offer", "sdp": "v=0\r\no=- 1 2 IN IP4 0.0.0.0"}

        message = decode_message(
            json.dumps({"type": "RTCOffer", "to_id": 3, "offer": offer})
        )

        assert message.offer == offer

    def test_extra_fields_kept(self):
        """Test client extensions survive decoding."""
        message = decode_message(
            '{"type": "RTCAnswer", "to_id": 3, "answer": null, "from_id": 9}'
        )

        assert message.model_extra == {"from_id": 9}

    def test_accepts_bytes(self):
        """Test UTF-8 encoded frames decode like text."""
        message = decode_message(b'{"type": "ConnectionRequest", "to_id": 4}')

        assert isinstance(message, ConnectionRequest)
        assert message.to_id == 4

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            "42",
            '"RTCOffer"',
            '{"type": "Unknown"}',
            '{"type": "RTCOffer", "offer": {}}',
            '{"type": "ConnectionRequest", "to_id": "two"}',
            '{"type": "Welcome"}',
        ],
    )
    def test_invalid_frames_return_none(self, text):
        """Test undecodable frames yield None instead of raising."""
        assert decode_message(text) is None

    def test_accepted_is_optional(self):
        """Test ConnectionResponse decodes with and without `accepted`."""
        bare = decode_message('{"type": "ConnectionResponse", "from_id": 1}')
        answered = decode_message(
            '{"type": "ConnectionResponse", "from_id": 1, "accepted": false}'
        )

        assert bare.accepted is None
        assert answered.accepted is False


class TestRoutingTarget:
    """Tests for routing_target function."""

    @pytest.mark.parametrize(
        "message, target",
        [
            (ConnectionRequest(to_id=2), 2),
            (RTCOffer(to_id=3, offer={}), 3),
            (RTCAnswer(to_id=4, answer={}), 4),
            (RTCCandidate(to_id=5, candidate={}), 5),
            (PeerStateChange(from_id=1, to_id=6, state="connected"), 6),
            (ConnectionResponse(from_id=7), 7),
            (Welcome(user_id=1), None),
            (UserList(users=[]), None),
        ],
    )
    def test_targets(self, message, target):
        """Test each variant names the right destination."""
        assert routing_target(message) == target


class TestEncoding:
    """Tests for server-built messages."""

    def test_welcome_encoding(self):
        """Test Welcome serializes with its discriminator."""
        assert json.loads(Welcome(user_id=3).encode()) == {
            "type": "Welcome",
            "user_id": 3,
        }

    def test_user_for_connection(self):
        """Test roster entries use the derived display name."""
        user = User.for_connection(12)

        assert user.id == 12
        assert user.name == "User 12"

    def test_user_list_encoding(self):
        """Test UserList carries users in the given order."""
        roster = UserList(users=[User.for_connection(2), User.for_connection(1)])

        assert json.loads(roster.encode()) == {
            "type": "UserList",
            "users": [
                {"id": 2, "name": "User 2"},
                {"id": 1, "name": "User 1"},
            ],
        }


class TestStrictIdentifiers:
    """Tests that connection ids are never coerced."""

    @pytest.mark.parametrize(
        "text",
        [
            '{"type": "ConnectionRequest", "to_id": "5"}',
            '{"type": "RTCOffer", "to_id": 5.0, "offer": {}}',
            '{"type": "ConnectionResponse", "from_id": true}',
            '{"type": "Welcome", "user_id": "1"}',
            (
                '{"type": "PeerStateChange", "from_id": "1", "to_id": 2, '
                '"state": "connected"}'
            ),
            '{"type": "UserList", "users": [{"id": "2", "name": "User 2"}]}',
        ],
    )
    def test_non_integer_ids_rejected(self, text):
        """Test numeric strings, floats and booleans do not decode."""
        assert decode_message(text) is None
