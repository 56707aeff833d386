"""
Unit Tests for the Algorithm Navigator

Tests for transitions, evaluator chaining, back navigation, restart,
serialization and failure atomicity.
"""
import json

import pytest

from diastology.algorithms import DEFAULT_ALGORITHMS
from diastology.exceptions import (
    AlgorithmNotFoundError,
    EvaluatorCycleError,
    InvalidAnswerError,
    NavigationStateError,
    SerializationError,
)
from diastology.models.node_models import DecisionNode
from diastology.models.session_models import AUTO_EVALUATION, NavigationState, NavigationStatus
from diastology.services.navigator import AlgorithmNavigator


def entry_points():
    """(algorithm id, mode id) for the default entry and every mode."""
    points = []
    for algorithm in DEFAULT_ALGORITHMS:
        points.append((algorithm.id, None))
        points.extend((algorithm.id, mode.id) for mode in algorithm.modes)
    return points


class TestLifecycle:
    """Tests for starting and querying a session."""

    def test_uninitialized(self, navigator):
        assert navigator.status is NavigationStatus.UNINITIALIZED
        assert navigator.get_current_node() is None
        assert navigator.get_current_algorithm() is None
        assert navigator.get_answers() == {}
        assert navigator.history == []
        assert navigator.get_result() is None
        assert navigator.get_citation() is None
        assert not navigator.can_go_back()

    def test_unknown_algorithm(self, navigator):
        with pytest.raises(AlgorithmNotFoundError):
            navigator.start_algorithm("ase2099")

    def test_submit_before_start(self, navigator):
        with pytest.raises(NavigationStateError):
            navigator.submit_answer("normal")

    def test_restart_before_start(self, navigator):
        with pytest.raises(NavigationStateError):
            navigator.restart()

    def test_start(self, navigator):
        node = navigator.start_algorithm("ase2016")
        assert isinstance(node, DecisionNode)
        assert navigator.status is NavigationStatus.AT_DECISION
        assert navigator.get_current_algorithm().id == "ase2016"
        assert navigator.get_citation().authors.startswith("Nagueh")

    def test_answers_are_copied(self, navigator):
        navigator.start_algorithm("ase2016")
        navigator.submit_answer("normal")
        answers = navigator.get_answers()
        answers["initialAssessment"] = "reduced"
        assert navigator.get_answers()["initialAssessment"] == "normal"

    def test_result_status(self, navigator):
        navigator.start_algorithm("ase2016")
        navigator.submit_answer("reduced")
        navigator.submit_answer("gte2")
        assert navigator.status is NavigationStatus.AT_RESULT
        with pytest.raises(NavigationStateError):
            navigator.submit_answer("gte2")


class TestInvalidAnswer:
    """A rejected answer leaves the session untouched."""

    def test_unmapped_value(self, navigator):
        navigator.start_algorithm("ase2016")
        before = navigator.snapshot()

        with pytest.raises(InvalidAnswerError) as exc_info:
            navigator.submit_answer("borderline")

        assert exc_info.value.node_id == "initialAssessment"
        assert navigator.snapshot() == before

    def test_wildcard_accepts_any_value(self, navigator):
        navigator.start_algorithm("mayo2025")
        node = navigator.submit_answer("not-an-option")
        assert node.id == "eToERatio"


class TestClosedGraph:
    """Every option of every decision resolves to a defined successor."""

    @pytest.mark.parametrize(
        "algorithm,node_id,value",
        [
            (algorithm, node.id, option.value)
            for algorithm in DEFAULT_ALGORITHMS
            for node in algorithm.nodes.values()
            if isinstance(node, DecisionNode)
            for option in node.options
        ],
    )
    def test_option_resolves(self, navigator, algorithm, node_id, value):
        navigator.deserialize_state(
            NavigationState(algorithm_id=algorithm.id, current_node_id=node_id)
        )
        node = navigator.submit_answer(value)
        assert algorithm.has_node(node.id)
        assert navigator.status in (NavigationStatus.AT_DECISION, NavigationStatus.AT_RESULT)


class TestStrictInverse:
    """Going back after an answer restores the previous state exactly."""

    @pytest.mark.parametrize("algorithm_id,mode_id", entry_points())
    @pytest.mark.parametrize("choice", [0, -1])
    def test_walk(self, navigator, algorithm_id, mode_id, choice):
        navigator.start_algorithm(algorithm_id, mode_id)

        while not navigator.is_at_result():
            node = navigator.get_current_node()
            value = node.options[choice].value
            before = navigator.snapshot()

            navigator.submit_answer(value)
            added = len(navigator.history) - len(before.history)
            for _ in range(added):
                assert navigator.go_back()

            after = navigator.snapshot()
            assert after.current_node_id == before.current_node_id
            assert after.answers == before.answers
            assert after.history == before.history

            navigator.submit_answer(value)

    def test_back_across_remap(self, navigator):
        navigator.start_algorithm("ase2016")
        for value in ["normal", "positive", "positive", "positive"]:
            navigator.submit_answer(value)
        before = navigator.get_answers()

        navigator.submit_answer("negative")
        assert navigator.current_node_id == "dysfunctionStart"
        assert "dysfunctionLA" in navigator.get_answers()

        assert navigator.go_back_to_decision()
        assert navigator.current_node_id == "laVolume"
        assert navigator.get_answers() == before

    def test_back_restores_previous_answer(self, navigator):
        navigator.start_algorithm("ase2016")
        navigator.submit_answer("reduced")
        navigator.submit_answer("mid_range")
        navigator.submit_answer("positive")
        navigator.go_back()
        navigator.go_back_to_decision()
        assert navigator.current_node_id == "dysfunctionStart"
        navigator.submit_answer("mid_range")
        assert navigator.current_node_id == "dysfunctionStep2"

    def test_history_copies_are_detached(self, navigator):
        navigator.start_algorithm("ase2016")
        navigator.submit_answer("normal")

        entry = navigator.history[0]
        entry.overwritten["initialAssessment"] = "reduced"
        assert navigator.history[0].overwritten == {"initialAssessment": None}

        assert navigator.go_back()
        assert navigator.get_answers() == {}
        assert navigator.current_node_id == "initialAssessment"

    def test_empty_history(self, navigator):
        navigator.start_algorithm("ase2016")
        assert not navigator.go_back()
        assert not navigator.go_back_to_decision()
        assert navigator.current_node_id == "initialAssessment"


class TestEvaluatorChaining:
    """Tests for automatic evaluator resolution."""

    def test_chain_records_each_evaluator(self, synthetic_navigator):
        synthetic_navigator.start_algorithm("chained")
        node = synthetic_navigator.submit_answer("yes")

        assert node.id == "finish"
        history = synthetic_navigator.history
        assert [entry.node_id for entry in history] == ["start", "evalA", "evalB"]
        assert [entry.answer for entry in history] == ["yes", AUTO_EVALUATION, AUTO_EVALUATION]
        assert synthetic_navigator.get_answers() == {"start": "yes", "copied": "yes"}

    def test_single_back_rests_on_evaluator(self, synthetic_navigator):
        synthetic_navigator.start_algorithm("chained")
        synthetic_navigator.submit_answer("yes")

        assert synthetic_navigator.go_back()
        assert synthetic_navigator.current_node_id == "evalB"
        assert synthetic_navigator.status is NavigationStatus.AT_EVALUATOR

        assert synthetic_navigator.go_back()
        assert synthetic_navigator.current_node_id == "evalA"
        assert synthetic_navigator.get_answers() == {"start": "yes"}

        assert synthetic_navigator.go_back()
        assert synthetic_navigator.current_node_id == "start"
        assert synthetic_navigator.get_answers() == {}

    def test_submit_at_evaluator_resolves_it(self, synthetic_navigator):
        synthetic_navigator.start_algorithm("chained")
        synthetic_navigator.submit_answer("yes")
        synthetic_navigator.go_back()

        node = synthetic_navigator.submit_answer("ignored")
        assert node.id == "finish"
        assert len(synthetic_navigator.history) == 3

    def test_back_to_decision(self, synthetic_navigator):
        synthetic_navigator.start_algorithm("chained")
        synthetic_navigator.submit_answer("yes")

        assert synthetic_navigator.go_back_to_decision()
        assert synthetic_navigator.current_node_id == "start"
        assert synthetic_navigator.history == []

    def test_evaluator_entry_is_resolved(self, synthetic_navigator):
        node = synthetic_navigator.start_algorithm("evaluator_entry")
        assert node.id == "question"
        assert [entry.node_id for entry in synthetic_navigator.history] == ["router"]

        assert synthetic_navigator.go_back_to_decision()
        assert synthetic_navigator.current_node_id == "question"

    def test_cycle_guard(self, synthetic_navigator):
        synthetic_navigator.start_algorithm("cyclic")
        before = synthetic_navigator.snapshot()

        with pytest.raises(EvaluatorCycleError) as exc_info:
            synthetic_navigator.submit_answer("yes")

        assert len(exc_info.value.chain) == 5
        assert synthetic_navigator.snapshot() == before


class TestRestart:
    """restart() matches a fresh start."""

    @pytest.mark.parametrize("algorithm_id,mode_id", entry_points())
    def test_restart(self, registry, navigator, algorithm_id, mode_id):
        navigator.start_algorithm(algorithm_id, mode_id)
        navigator.submit_answer(navigator.get_current_node().options[0].value)
        navigator.restart()

        fresh = AlgorithmNavigator(registry=registry)
        fresh.start_algorithm(algorithm_id, mode_id)
        assert navigator.snapshot() == fresh.snapshot()


class TestSerialization:
    """Tests for snapshot and restore."""

    def test_camel_case_keys(self, navigator):
        navigator.start_algorithm("bse2024", "afib")
        navigator.submit_answer("positive")
        data = json.loads(navigator.serialize_state())

        assert data["algorithmId"] == "bse2024"
        assert data["modeId"] == "afib"
        assert data["currentNodeId"] == "mvEVelocity"
        assert data["history"][0]["nodeId"] == "afibStart"
        assert data["answers"] == {"afibStart": "positive"}

    def test_restored_session_behaves_identically(self, registry, navigator):
        navigator.start_algorithm("ase2016")
        for value in ["normal", "positive", "positive", "positive", "negative"]:
            navigator.submit_answer(value)

        restored = AlgorithmNavigator(registry=registry)
        restored.deserialize_state(navigator.serialize_state())
        assert restored.snapshot() == navigator.snapshot()

        for engine in (navigator, restored):
            engine.submit_answer("mid_range")
        assert restored.snapshot() == navigator.snapshot()
        assert restored.get_result() == navigator.get_result()

        for engine in (navigator, restored):
            engine.go_back_to_decision()
            engine.go_back_to_decision()
        assert restored.snapshot() == navigator.snapshot()
        assert restored.current_node_id == "laVolume"

    def test_accepts_mapping_and_bytes(self, navigator):
        blob = {"algorithmId": "mayo2025", "currentNodeId": "trVelocity"}
        navigator.deserialize_state(blob)
        assert navigator.current_node_id == "trVelocity"

        navigator.deserialize_state(json.dumps(blob).encode())
        assert navigator.current_node_id == "trVelocity"

    @pytest.mark.parametrize(
        "blob",
        [
            "not json",
            "[]",
            {"algorithmId": "mayo2025"},
            {"algorithmId": "unknown", "currentNodeId": "start"},
            {"algorithmId": "mayo2025", "currentNodeId": "heartFailureCheck"},
            {
                "algorithmId": "mayo2025",
                "currentNodeId": "trVelocity",
                "history": [{"nodeId": "nowhere", "answer": "normal"}],
            },
            42,
        ],
    )
    def test_malformed_input_leaves_session(self, navigator, blob):
        navigator.start_algorithm("ase2016")
        navigator.submit_answer("normal")
        before = navigator.snapshot()

        with pytest.raises(SerializationError):
            navigator.deserialize_state(blob)

        assert navigator.snapshot() == before

    def test_snapshot_without_undo_information(self, navigator):
        navigator.deserialize_state({
            "algorithmId": "mayo2025",
            "currentNodeId": "trVelocity",
            "history": [
                {"nodeId": "criteriaCollection", "answer": "normal"},
                {"nodeId": "eToERatio", "answer": "normal"},
            ],
            "answers": {"criteriaCollection": "normal", "eToERatio": "normal"},
        })

        assert navigator.go_back()
        assert navigator.current_node_id == "eToERatio"
        assert navigator.get_answers() == {"criteriaCollection": "normal"}

    def test_snapshot_is_a_copy(self, navigator):
        navigator.start_algorithm("ase2016")
        snapshot = navigator.snapshot()
        snapshot.answers["initialAssessment"] = "normal"
        assert navigator.get_answers() == {}
