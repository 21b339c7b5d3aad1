"""Unit tests for the sequence diagram dialect."""

from flowsmith.sequence_diagram import (
    add_message,
    add_participant,
    parse_sequence_diagram,
    remove_message,
    remove_participant,
    update_message,
    update_participant,
)


class TestParseSequenceDiagram:
    """Tests for parse_sequence_diagram."""

    def test_participants(self, sequence_text):
        """Test declared, actor and implicit participants."""
        participants = parse_sequence_diagram(sequence_text).participants
        assert list(participants) == ["A", "B", "C"]
        assert participants["A"].label == "Alice"
        assert participants["A"].line == 1
        assert participants["B"].type == "actor"
        assert participants["C"].is_implicit

    def test_messages(self, sequence_text):
        """Test arrows, text and activation markers."""
        hello, hi, ping = parse_sequence_diagram(sequence_text).messages
        assert (hello.arrow, hello.activation, hello.text) == ("->>", "+", "Hello")
        assert (hi.source, hi.target, hi.arrow) == ("B", "A", "-->>")
        assert hi.activation == "-"
        assert ping.arrow == "-)"
        assert ping.line == 5

    def test_message_without_text(self):
        """Test a message with no colon."""
        message = parse_sequence_diagram("sequenceDiagram\n    A->B").messages[0]
        assert message.arrow == "->"
        assert message.text == ""


class TestParticipantMutations:
    """Tests for participant add/update/remove."""

    def test_add_after_last_participant(self, sequence_text):
        """Test that a new participant joins the declaration block."""
        lines = add_participant(sequence_text, "D", "Dave").split("\n")
        assert lines[3] == "    participant D as Dave"

    def test_add_actor(self, sequence_text):
        """Test declaring an actor."""
        lines = add_participant(sequence_text, "E", type="actor").split("\n")
        assert lines[3] == "    actor E"

    def test_add_existing_is_noop(self, sequence_text):
        """Test that a declared participant is not added twice."""
        assert add_participant(sequence_text, "A") == sequence_text

    def test_add_to_header_only(self):
        """Test the first participant goes right after the header."""
        result = add_participant("sequenceDiagram", "A")
        assert result == "sequenceDiagram\n    participant A"

    def test_update_declared(self, sequence_text):
        """Test rewriting an alias in place."""
        lines = update_participant(sequence_text, "A", "Alicia").split("\n")
        assert lines[1] == "    participant A as Alicia"

    def test_update_keeps_role(self, sequence_text):
        """Test that an actor stays an actor."""
        lines = update_participant(sequence_text, "B", "Robert").split("\n")
        assert lines[2] == "    actor B as Robert"

    def test_update_implicit_declares(self, sequence_text):
        """Test that an implicit participant gains a declaration."""
        lines = update_participant(sequence_text, "C", "Carol").split("\n")
        assert lines[3] == "    participant C as Carol"
        assert len(lines) == 7

    def test_remove(self, sequence_text):
        """Test removing a participant with its messages."""
        assert remove_participant(sequence_text, "B") == (
            "sequenceDiagram\n    participant A as Alice\n    A-)C: async"
        )


class TestMessageMutations:
    """Tests for message add/update/remove."""

    def test_add(self, sequence_text):
        """Test appending a reply."""
        result = add_message(sequence_text, "C", "A", "reply", arrow="-->>")
        assert result.split("\n")[-1] == "    C-->>A: reply"

    def test_add_unknown_arrow_is_noop(self, sequence_text):
        """Test that an unknown arrow is refused."""
        assert add_message(sequence_text, "A", "B", "x", arrow="=>") == sequence_text

    def test_update_text_keeps_activation(self, sequence_text):
        """Test rewriting the text of a message."""
        result = update_message(sequence_text, "A", "B", label="Hey")
        assert result.split("\n")[3] == "    A->>+B: Hey"

    def test_update_arrow(self, sequence_text):
        """Test swapping the arrow."""
        result = update_message(sequence_text, "A", "B", arrow="-x")
        assert result.split("\n")[3] == "    A-x+B: Hello"

    def test_update_missing_is_noop(self, sequence_text):
        """Test that an unknown pair leaves the text unchanged."""
        assert update_message(sequence_text, "C", "A", label="x") == sequence_text

    def test_remove(self, sequence_text):
        """Test removing a message."""
        result = remove_message(sequence_text, "B", "A")
        assert "Hi" not in result
        assert len(result.split("\n")) == 5
