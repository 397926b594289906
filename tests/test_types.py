"""
Tests for the conversation history and turn types.
"""

import dataclasses

import pytest

from chat_core.types import ConversationHistory, ConversationTurn, Role, StructuredReply


class TestConversationHistory:
    def test_starts_with_system_prompt(self):
        history = ConversationHistory("Tu es Madame Zelda.")

        assert len(history) == 1
        assert history[0] == ConversationTurn(Role.SYSTEM, "Tu es Madame Zelda.")
        assert history.system_prompt == "Tu es Madame Zelda."

    def test_append_preserves_order(self):
        history = ConversationHistory("system")
        history.append(Role.USER, "Bonjour")
        history.append(Role.ASSISTANT, '{"spoken":"Bonsoir","score":50,"insults":false}')

        assert history.as_messages() == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "Bonjour"},
            {"role": "assistant", "content": '{"spoken":"Bonsoir","score":50,"insults":false}'},
        ]
        assert history.count(Role.USER) == 1

    def test_second_system_turn_rejected(self):
        history = ConversationHistory("system")

        with pytest.raises(ValueError):
            history.append(Role.SYSTEM, "override")
        assert len(history) == 1

    def test_snapshots_do_not_leak_mutation(self):
        history = ConversationHistory("system")
        messages = history.as_messages()
        messages.append({"role": "user", "content": "injected"})
        turns = history.turns()

        assert len(history) == 1
        assert isinstance(turns, tuple)


def test_turns_and_replies_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        ConversationTurn(Role.USER, "Bonjour").content = "changed"
    with pytest.raises(dataclasses.FrozenInstanceError):
        StructuredReply(spoken="Oui", score=50, insults=False).score = 90


def test_role_wire_values():
    assert [role.value for role in Role] == ["system", "user", "assistant"]
