"""
ASE/EACVI 2016 diastolic function algorithm.

Two linked sub-flows share one node pool:

1. The "1st algorithm" (normal LVEF without myocardial disease) votes over
   four parameters: average E/e', e' velocity, TR velocity, LA volume.
2. The "2nd algorithm" (reduced LVEF, or normal LVEF with myocardial
   disease) grades dysfunction from the mitral inflow pattern plus a
   three-parameter vote, optionally extended with pulmonary vein S/D.

A positive 1st-algorithm vote in a normal-LVEF patient transitions into
the 2nd algorithm. Answers already gathered under the 1st algorithm's node
ids are remapped into the 2nd algorithm's slots so they are not asked again.
"""

from diastology.models.algorithm_models import Algorithm, AlgorithmMode, Citation
from diastology.models.context import SessionContext, tally_values
from diastology.models.node_models import (
    WILDCARD,
    AnswerRemap,
    ResultKey,
    decision_node,
    evaluator_node,
    index_nodes,
    result_node,
)

POSITIVE_EE = frozenset({"positive", "positive_septal", "positive_lateral"})

STANDARD_PARAMETERS = ("standardStart", "eVelocity", "trVelocity", "laVolume")
DYSFUNCTION_PARAMETERS = ("dysfunctionStep2", "dysfunctionTR", "dysfunctionLA")

# 1st-algorithm answers -> 2nd-algorithm slots
DYSFUNCTION_REMAP = (
    AnswerRemap(
        source="standardStart",
        target="dysfunctionStep2",
        values={
            "positive": "positive",
            "positive_septal": "positive",
            "positive_lateral": "positive",
            "negative": "negative",
            "unavailable": "unavailable",
        },
    ),
    AnswerRemap(source="trVelocity", target="dysfunctionTR"),
    AnswerRemap(source="laVolume", target="dysfunctionLA"),
)

# Fallback sources consulted when a 2nd-algorithm slot is empty or unavailable.
_DYSFUNCTION_FALLBACKS = {
    "dysfunctionStep2": "standardStart",
    "dysfunctionTR": "trVelocity",
    "dysfunctionLA": "laVolume",
}


def _normalize_ee(value: str | None) -> str | None:
    """Collapse septal-only/lateral-only positive E/e' into ``positive``."""
    if value in POSITIVE_EE:
        return "positive"
    return value


def evaluate_standard(context: SessionContext) -> str:
    """Majority vote over the four 1st-algorithm parameters."""
    tally = context.tally(STANDARD_PARAMETERS, positive=POSITIVE_EE)
    available = tally.available

    if tally.negative > available / 2:
        return "resultNormal"
    if tally.positive > available / 2:
        if context.get("initialAssessment") == "normal":
            return "transitionToDysfunction"
        return "resultImpairedElevated"
    return "resultIndeterminate"


def transition_to_dysfunction(context: SessionContext) -> str:
    return "dysfunctionStart"


def check_existing_answers(context: SessionContext) -> str:
    """Ask only for 2nd-algorithm parameters that have not been answered yet."""
    for node_id in DYSFUNCTION_PARAMETERS:
        if node_id not in context:
            return node_id
    return "dysfunctionEvaluate"


def check_pv_flow(context: SessionContext) -> str:
    """Pulmonary vein S/D is only needed for reduced LVEF with missing data."""
    has_unavailable = any(
        context.get(node_id) == "unavailable" for node_id in DYSFUNCTION_PARAMETERS
    )
    if has_unavailable and context.get("initialAssessment") == "reduced":
        return "dysfunctionPVFlow"
    return "dysfunctionEvaluate"


def _dysfunction_values(context: SessionContext) -> dict[str, str | None]:
    values: dict[str, str | None] = {}
    for slot, fallback in _DYSFUNCTION_FALLBACKS.items():
        value = context.get(slot)
        if value is None or value == "unavailable":
            value = context.get(fallback)
        if value is None:
            value = "unavailable"
        if slot == "dysfunctionStep2":
            value = _normalize_ee(value)
        values[slot] = value

    pv_flow = context.get("dysfunctionPVFlow")
    if pv_flow in ("positive", "negative"):
        values["pv_sd_ratio"] = pv_flow
    return values


def evaluate_dysfunction(context: SessionContext) -> str:
    """
    Grade dysfunction from three (or four, with PV S/D) parameters.

    With three or more available parameters two concordant answers decide;
    with exactly two available both must agree; fewer is insufficient.
    """
    tally = tally_values(_dysfunction_values(context))
    available = tally.available

    if available >= 3:
        if tally.positive >= 2:
            return "resultGrade2"
        if tally.negative >= 2:
            return "resultGrade1"
        return "resultIndeterminate"
    if available == 2:
        if tally.positive == 2:
            return "resultGrade2"
        if tally.negative == 2:
            return "resultGrade1"
        return "resultIndeterminate"
    return "resultInsufficientInfo"


_THREE_WAY = [
    ("positive", "> 2.8 m/s"),
    ("negative", "≤ 2.8 m/s"),
    ("unavailable", "Unavailable"),
]

_LA_VOLUME = [
    ("positive", "> 34 ml/m²"),
    ("negative", "≤ 34 ml/m²"),
    ("unavailable", "Unavailable"),
]


ASE2016 = Algorithm(
    id="ase2016",
    name="ASE/EACVI Diastolic Function (2016)",
    description="Widely used algorithm for assessing diastolic function",
    citation=Citation(
        authors="Nagueh, S., Smiseth, O., Appleton, C. et al.",
        title=(
            "Recommendations for the Evaluation of Left Ventricular Diastolic Function "
            "by Echocardiography: An Update from the American Society of Echocardiography "
            "and the European Association of Cardiovascular Imaging"
        ),
        journal="Journal of the American Society of Echocardiography, 29(4), 277–314. (2016)",
        url="https://pubmed.ncbi.nlm.nih.gov/27037982/",
    ),
    modes=(
        AlgorithmMode(
            id="integrated",
            name="ASE 2016 Integrated Assessment",
            description="Complete assessment starting with LVEF evaluation",
            start_node_id="initialAssessment",
        ),
    ),
    start_node_id="initialAssessment",
    nodes=index_nodes(
        decision_node(
            "initialAssessment",
            "What is the left ventricular ejection fraction (LVEF)?",
            [
                ("normal", "Normal LVEF (≥50%) without myocardial disease"),
                ("normal_with_disease", "Normal LVEF with myocardial disease (ischemia, LVH, CMP)"),
                ("reduced", "Reduced LVEF (<50%)"),
            ],
            {
                "normal": "standardStart",
                "reduced": "dysfunctionStart",
                "normal_with_disease": "dysfunctionStart",
            },
        ),

        # 1st algorithm
        decision_node(
            "standardStart",
            "What is the average E/e' ratio?",
            [
                ("positive", "> 14"),
                ("negative", "≤ 14"),
                ("positive_septal", "Septal E/e' > 15 (only septal available)"),
                ("positive_lateral", "Lateral E/e' > 13 (only lateral available)"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "eVelocity"},
        ),
        decision_node(
            "eVelocity",
            "What are the e' velocities?",
            [
                ("negative", "Septal ≥ 7 AND Lateral ≥ 10 cm/s"),
                ("positive", "Septal < 7 OR Lateral < 10 cm/s"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "trVelocity"},
        ),
        decision_node(
            "trVelocity",
            "What is the TR Velocity?",
            _THREE_WAY,
            {WILDCARD: "laVolume"},
        ),
        decision_node(
            "laVolume",
            "What is the indexed LA Volume?",
            _LA_VOLUME,
            {WILDCARD: "standardEvaluate"},
        ),
        evaluator_node(
            "standardEvaluate",
            evaluate_standard,
            targets=["resultNormal", "transitionToDysfunction", "resultImpairedElevated", "resultIndeterminate"],
        ),
        evaluator_node(
            "transitionToDysfunction",
            transition_to_dysfunction,
            targets=["dysfunctionStart"],
            remaps=DYSFUNCTION_REMAP,
        ),

        # 2nd algorithm
        decision_node(
            "dysfunctionStart",
            "What is the Mitral Inflow Pattern (E/A ratio)?",
            [
                ("gte2", "E/A ≥ 2"),
                ("mid_range", "E/A between 0.8 and 1.99"),
                ("lt08_high_e", "E/A ≤ 0.8 AND E > 50 cm/s"),
                ("lt08_low_e", "E/A ≤ 0.8 AND E ≤ 50 cm/s"),
            ],
            {
                "gte2": "resultGrade3",
                "lt08_low_e": "resultGrade1",
                "lt08_high_e": "checkExistingAnswers",
                "mid_range": "checkExistingAnswers",
            },
        ),
        evaluator_node(
            "checkExistingAnswers",
            check_existing_answers,
            targets=[*DYSFUNCTION_PARAMETERS, "dysfunctionEvaluate"],
            remaps=DYSFUNCTION_REMAP,
        ),
        decision_node(
            "dysfunctionStep2",
            "What is the average E/e' ratio?",
            [
                ("positive", "> 14"),
                ("positive_septal", "Septal E/e' > 15 (only septal available)"),
                ("positive_lateral", "Lateral E/e' > 13 (only lateral available)"),
                ("negative", "≤ 14 (or below septal/lateral thresholds)"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "dysfunctionTR"},
        ),
        decision_node(
            "dysfunctionTR",
            "What is the TR Velocity?",
            _THREE_WAY,
            {WILDCARD: "dysfunctionLA"},
        ),
        decision_node(
            "dysfunctionLA",
            "What is the indexed LA Volume?",
            _LA_VOLUME,
            {WILDCARD: "checkDysfunctionPVFlow"},
        ),
        evaluator_node(
            "checkDysfunctionPVFlow",
            check_pv_flow,
            targets=["dysfunctionPVFlow", "dysfunctionEvaluate"],
        ),
        decision_node(
            "dysfunctionPVFlow",
            "What is the pulmonary vein S/D ratio?",
            [
                ("negative", "≥ 1"),
                ("positive", "< 1"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "dysfunctionEvaluate"},
        ),
        evaluator_node(
            "dysfunctionEvaluate",
            evaluate_dysfunction,
            targets=["resultGrade1", "resultGrade2", "resultIndeterminate", "resultInsufficientInfo"],
        ),

        result_node("resultNormal", ResultKey.NORMAL),
        result_node("resultGrade1", ResultKey.GRADE_1),
        result_node("resultGrade2", ResultKey.GRADE_2),
        result_node("resultGrade3", ResultKey.GRADE_3),
        result_node("resultImpairedElevated", ResultKey.IMPAIRED_ELEVATED),
        result_node("resultIndeterminate", ResultKey.INDETERMINATE),
        result_node("resultInsufficientInfo", ResultKey.INSUFFICIENT_INFO),
    ),
)
