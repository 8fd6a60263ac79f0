import pytest
from pydantic import ValidationError

from relay.messaging.types import (
    ControllerAttachMessage,
    JoinMessage,
    ReconnectionConfirmationMessage,
    RelayMessageType,
    parse_client_message,
)
from relay.server.types import SelectAvatarRequest


class TestParseClientMessage:
    def test_join(self):
        msg = parse_client_message({"type": "join", "room_code": "ABCD", "name": "alice"})

        assert isinstance(msg, JoinMessage)
        assert msg.room_code == "ABCD"
        assert msg.name == "alice"

    def test_controller_attach(self):
        msg = parse_client_message({"type": "controller_attach", "room_code": "ABCD"})

        assert isinstance(msg, ControllerAttachMessage)
        assert msg.room_code == "ABCD"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_client_message({"type": "select_avatar", "id": 0, "avatar": "fox"})

    def test_missing_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_client_message({"room_code": "ABCD", "name": "alice"})

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "join", "room_code": "ABCD"},
            {"type": "join", "room_code": "ABCD", "name": ""},
            {"type": "join", "room_code": "", "name": "alice"},
            {"type": "join", "room_code": "ABCD", "name": "x" * 51},
            {"type": "join", "room_code": "ABCD", "name": 7},
            {"type": "controller_attach"},
        ],
    )
    def test_invalid_fields_rejected(self, data):
        with pytest.raises(ValidationError):
            parse_client_message(data)

    def test_control_characters_in_name_rejected(self):
        with pytest.raises(ValidationError, match="control characters"):
            parse_client_message({"type": "join", "room_code": "ABCD", "name": "al\nice"})


class TestOutboundMessages:
    def test_reconnection_confirmation_shape(self):
        msg = ReconnectionConfirmationMessage(id=2, avatar=None)

        assert msg.model_dump() == {
            "type": RelayMessageType.RECONNECTION_CONFIRMATION,
            "id": 2,
            "reconnected": True,
            "avatar": None,
        }


class TestSelectAvatarRequest:
    def test_valid(self):
        req = SelectAvatarRequest.model_validate({"id": 0, "avatar": "fox"})

        assert req.id == 0
        assert req.avatar == "fox"

    @pytest.mark.parametrize(
        "data",
        [
            {"avatar": "fox"},
            {"id": 1},
            {"id": "1", "avatar": "fox"},
            {"id": -1, "avatar": "fox"},
            {"id": 1, "avatar": ""},
            {"id": 1, "avatar": "fox", "extra": True},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ValidationError):
            SelectAvatarRequest.model_validate(data)
