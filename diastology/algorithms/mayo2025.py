"""
Young et al. (Mayo Clinic) 2025 diastolic function algorithm.

Four criteria are collected and voted on; the filling-pressure outcome
is then split by the mitral E/A ratio into a diastolic grade.
"""

from diastology.models.algorithm_models import Algorithm, AlgorithmMode, Citation
from diastology.models.context import SessionContext
from diastology.models.node_models import (
    WILDCARD,
    ResultKey,
    decision_node,
    evaluator_node,
    index_nodes,
    result_node,
)

CRITERIA_PARAMETERS = ("criteriaCollection", "eToERatio", "trVelocity", "laVolume")
ABNORMAL = frozenset({"abnormal"})
NORMAL = frozenset({"normal"})


def evaluate_criteria(context: SessionContext) -> str:
    """
    3-of-4 majority, or 2-of-3 when exactly one criterion is unavailable.

    Fewer than three available criteria cannot be graded.
    """
    tally = context.tally(CRITERIA_PARAMETERS, positive=ABNORMAL, negative=NORMAL)
    available = tally.available

    if available < 3:
        return "resultInsufficientData"
    if tally.negative >= 3 or (available == 3 and tally.negative == 2):
        return "normalFillingPressure"
    if tally.positive >= 3 or (available == 3 and tally.positive == 2):
        return "elevatedFillingPressure"
    # 2 normal / 2 abnormal, or too few answered criteria
    return "resultIndeterminate"


MAYO2025 = Algorithm(
    id="mayo2025",
    name="Young et al. Diastolic Function (2025)",
    description="From the Mayo Clinic",
    citation=Citation(
        authors="Young, Kathleen A. et al.",
        title=(
            "Association of Impaired Relaxation Mitral Inflow Pattern (Grade 1 Diastolic "
            "Function) With Long-Term Noncardiovascular and Cardiovascular Mortality"
        ),
        journal="Journal of the American Society of Echocardiography (2025)",
        url="https://onlinejase.com/article/S0894-7317(25)00036-7/abstract",
    ),
    modes=(
        AlgorithmMode(
            id="standard",
            name="Mayo Standard Algorithm",
            description=(
                "This algorithm applies to patients with an EF ≥ 50% and without "
                "heart failure or significant valve disease"
            ),
            start_node_id="criteriaCollection",
        ),
    ),
    start_node_id="criteriaCollection",
    nodes=index_nodes(
        decision_node(
            "criteriaCollection",
            "Septal e' velocity",
            [
                ("normal", "≥ 7 cm/s"),
                ("abnormal", "< 7 cm/s"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "eToERatio"},
        ),
        decision_node(
            "eToERatio",
            "E/e' ratio (septal)",
            [
                ("abnormal", "> 15"),
                ("normal", "≤ 15"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "trVelocity"},
        ),
        decision_node(
            "trVelocity",
            "TR velocity",
            [
                ("abnormal", "> 2.8 m/s"),
                ("normal", "≤ 2.8 m/s"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "laVolume"},
        ),
        decision_node(
            "laVolume",
            "LA volume index",
            [
                ("abnormal", "> 34 mL/m²"),
                ("normal", "≤ 34 mL/m²"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "criteriaEvaluate"},
        ),
        evaluator_node(
            "criteriaEvaluate",
            evaluate_criteria,
            targets=[
                "resultInsufficientData",
                "normalFillingPressure",
                "elevatedFillingPressure",
                "resultIndeterminate",
            ],
        ),
        decision_node(
            "normalFillingPressure",
            "E/A ratio",
            [
                ("greater", "> 0.8"),
                ("less_equal", "≤ 0.8"),
            ],
            {"greater": "resultNormal", "less_equal": "resultGrade1"},
        ),
        decision_node(
            "elevatedFillingPressure",
            "E/A ratio",
            [
                ("greater_equal", "≥ 2"),
                ("less", "< 2"),
            ],
            {"less": "resultGrade2", "greater_equal": "resultGrade3"},
        ),

        result_node("resultNormal", ResultKey.NORMAL),
        result_node("resultGrade1", ResultKey.GRADE_1),
        result_node("resultGrade2", ResultKey.GRADE_2),
        result_node("resultGrade3", ResultKey.GRADE_3),
        result_node("resultIndeterminate", ResultKey.INDETERMINATE),
        result_node("resultExclude", ResultKey.EXCLUDE),
        result_node("resultInsufficientData", ResultKey.INSUFFICIENT_INFO),
        result_node("resultNormalUnspecified", ResultKey.INSUFFICIENT_INFO),
        result_node("resultAbnormalUnspecified", ResultKey.INSUFFICIENT_INFO),
    ),
)
