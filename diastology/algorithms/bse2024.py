"""
BSE 2024 diastolic function algorithm.

Three independent pathways share one node pool, each entered through its
own mode: standard (normal LV function), dysfunction (reduced EF or
myocardial disease) and atrial fibrillation.
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

STANDARD_PARAMETERS = ("standardStart", "laVolume", "eToERatio")
AGE_SPECIFIC_PARAMETERS = ("ageSpecificE", "lateralE")
DYSFUNCTION_PARAMETERS = ("dysfunctionStart", "dysfunctionLaVolume", "dysfunctionEToERatio")
AFIB_PARAMETERS = ("afibStart", "mvEVelocity", "mvEDecelTimeAF", "septalEToERatio")
AFIB_STEP2_PARAMETERS = ("afibStep2", "bmi", "afibPvSDRatio")


def _screen(context: SessionContext, parameters: tuple[str, ...], on_normal: str, on_split: str) -> str:
    """
    Three-parameter screen shared by the standard and dysfunction pathways.

    Two unavailable answers are insufficient; two concordant answers
    decide; a 1-1 split between the two available answers escalates.
    """
    tally = context.tally(parameters)

    if tally.unavailable >= 2:
        return "resultInsufficientInfo"
    if tally.negative >= 2:
        return on_normal
    if tally.positive >= 2:
        return "resultImpairedElevated"
    if tally.answered_available == 2 and tally.positive == 1 and tally.negative == 1:
        return on_split
    return "resultIndeterminate"


def evaluate_standard(context: SessionContext) -> str:
    return _screen(context, STANDARD_PARAMETERS, on_normal="ageSpecificE", on_split="laStrain")


def evaluate_age_specific_e(context: SessionContext) -> str:
    tally = context.tally(AGE_SPECIFIC_PARAMETERS)
    if tally.positive > 0:
        return "resultImpairedNormal"
    return "resultNormal"


def evaluate_dysfunction(context: SessionContext) -> str:
    return _screen(
        context,
        DYSFUNCTION_PARAMETERS,
        on_normal="resultImpairedNormal",
        on_split="dysfunctionLaStrain",
    )


def evaluate_afib(context: SessionContext) -> str:
    tally = context.tally(AFIB_PARAMETERS)
    if tally.negative >= 3:
        return "resultAFNormal"
    if tally.positive >= 3:
        return "resultImpairedElevated"
    return "afibStep2"


def evaluate_afib_step2(context: SessionContext) -> str:
    tally = context.tally(AFIB_STEP2_PARAMETERS)
    if tally.positive >= 2:
        return "resultImpairedElevated"
    if tally.negative >= 2:
        return "resultAFNormal"
    return "resultIndeterminate"


_TR_VELOCITY = [
    ("positive", "> 2.8 m/s"),
    ("negative", "≤ 2.8 m/s"),
    ("unavailable", "Unavailable"),
]

_LA_VOLUME = [
    ("positive", "> 34 ml/m²"),
    ("negative", "≤ 34 ml/m²"),
    ("unavailable", "Unavailable"),
]

_E_TO_E = [
    ("positive", "> 14"),
    ("negative", "≤ 14"),
    ("unavailable", "Unavailable"),
]

_A_REVERSAL = [
    ("positive", "Ar - A duration > 30 ms"),
    ("negative", "Ar - A duration ≤ 30 ms"),
]

_L_WAVE = [
    ("positive", "L-wave velocity > 20 cm/s"),
    ("negative", "No L-wave or L velocity ≤ 20 cm/s"),
]


BSE2024 = Algorithm(
    id="bse2024",
    name="BSE Diastolic Function (2024)",
    description="Recently updated and published by the British Society of Echo",
    citation=Citation(
        authors="Robinson, S., Ring, L., Oxborough, D. et al.",
        title=(
            "The assessment of left ventricular diastolic function: guidance and "
            "recommendations from the British Society of Echocardiography"
        ),
        journal="Echo Res Pract 11, 16 (2024)",
        url="https://pubmed.ncbi.nlm.nih.gov/38825710/",
    ),
    modes=(
        AlgorithmMode(
            id="standard",
            name="BSE Standard Algorithm",
            description="Use this for normal LV function",
            start_node_id="standardStart",
        ),
        AlgorithmMode(
            id="dysfunction",
            name="BSE Dysfunction Algorithm",
            description="Use this for decreased EF & myocardial disease",
            start_node_id="dysfunctionStart",
        ),
        AlgorithmMode(
            id="afib",
            name="BSE Atrial Fibrillation Algorithm",
            description="Specifically for use in patients in atrial fibrillation",
            start_node_id="afibStart",
        ),
    ),
    start_node_id="standardStart",
    nodes=index_nodes(
        # Standard pathway
        decision_node("standardStart", "What is the TR Velocity?", _TR_VELOCITY, {WILDCARD: "laVolume"}),
        decision_node("laVolume", "What is the indexed LA Volume?", _LA_VOLUME, {WILDCARD: "eToERatio"}),
        decision_node("eToERatio", "What is the E/e' ratio?", _E_TO_E, {WILDCARD: "standardEvaluate"}),
        evaluator_node(
            "standardEvaluate",
            evaluate_standard,
            targets=[
                "resultInsufficientInfo",
                "ageSpecificE",
                "resultImpairedElevated",
                "laStrain",
                "resultIndeterminate",
            ],
        ),
        decision_node(
            "ageSpecificE",
            "What is the SEPTAL e'?",
            [
                ("positive", "18-40 yrs male: < 7 cm/sec"),
                ("positive", "18-40 yrs female: < 8 cm/sec"),
                ("positive", "41-65 yrs: < 5 cm/sec"),
                ("positive", ">65 yrs: < 4 cm/sec"),
                ("negative", "Septal e' is greater than these"),
            ],
            {WILDCARD: "lateralE"},
        ),
        decision_node(
            "lateralE",
            "What is the LATERAL e'?",
            [
                ("positive", "18-40 yrs male: < 9 cm/sec"),
                ("positive", "18-40 yrs female: < 11 cm/sec"),
                ("positive", "41-65 yrs: < 6 cm/sec"),
                ("positive", ">65 yrs: < 5 cm/sec"),
                ("negative", "Lateral e' is greater than these"),
            ],
            {WILDCARD: "ageSpecificEEvaluate"},
        ),
        evaluator_node(
            "ageSpecificEEvaluate",
            evaluate_age_specific_e,
            targets=["resultImpairedNormal", "resultNormal"],
        ),
        decision_node(
            "laStrain",
            "What is the LA Strain?",
            [
                ("negative", "pump strain ≥ 14% OR reservoir strain ≥ 30%"),
                ("positive", "pump strain < 14% OR reservoir strain < 30%"),
            ],
            {"positive": "lars", "negative": "ageSpecificE"},
        ),
        decision_node(
            "lars",
            "More specifically, What is the LA reservoir strain (LARS)?",
            [
                ("negative", "LARS ≥ 18%"),
                ("positive", "LARS < 18%"),
            ],
            {"positive": "resultImpairedElevated", "negative": "supplementalParams"},
        ),
        decision_node(
            "supplementalParams",
            "What about pulmonary vein a-reversal?",
            _A_REVERSAL,
            {"positive": "resultImpairedElevated", "negative": "lWave"},
        ),
        decision_node(
            "lWave",
            "What about an L wave?",
            _L_WAVE,
            {"positive": "resultImpairedElevated", "negative": "ageSpecificE"},
        ),

        # Dysfunction pathway
        decision_node(
            "dysfunctionStart", "What is the TR Velocity?", _TR_VELOCITY, {WILDCARD: "dysfunctionLaVolume"}
        ),
        decision_node(
            "dysfunctionLaVolume", "What is the indexed LA Volume?", _LA_VOLUME, {WILDCARD: "dysfunctionEToERatio"}
        ),
        decision_node(
            "dysfunctionEToERatio", "What is the E/e' ratio?", _E_TO_E, {WILDCARD: "dysfunctionEvaluate"}
        ),
        evaluator_node(
            "dysfunctionEvaluate",
            evaluate_dysfunction,
            targets=[
                "resultInsufficientInfo",
                "resultImpairedNormal",
                "resultImpairedElevated",
                "dysfunctionLaStrain",
                "resultIndeterminate",
            ],
        ),
        decision_node(
            "dysfunctionLaStrain",
            "What about the LA strain?",
            [
                ("negative", "LARS ≥ 24% or Pump Strain ≥ 14%"),
                ("positive", "LARS < 18% or Pump Strain < 8%"),
                ("intermediate", "LARS or Pump Strain is between these"),
            ],
            {
                "positive": "resultImpairedElevated",
                "negative": "resultImpairedNormal",
                "intermediate": "dysfunctionSupplementalParams",
            },
        ),
        decision_node(
            "dysfunctionSupplementalParams",
            "What about pulmonary vein a-reversal?",
            _A_REVERSAL,
            {"positive": "resultImpairedElevated", "negative": "pvSDRatio"},
        ),
        decision_node(
            "pvSDRatio",
            "What is the pulmonary vein S/D ratio?",
            [
                ("negative", "S/D ratio ≥ 1"),
                ("positive", "S/D ratio < 1"),
            ],
            {"positive": "resultImpairedElevated", "negative": "dysfunctionLWave"},
        ),
        decision_node(
            "dysfunctionLWave",
            "What about an L wave?",
            _L_WAVE,
            {"positive": "resultImpairedElevated", "negative": "mvEDecelTime"},
        ),
        decision_node(
            "mvEDecelTime",
            "What is the MV E decel. time?",
            [
                ("negative", "E Decel time ≥ 150 ms"),
                ("positive", "E Decel time < 150 ms"),
            ],
            {"positive": "resultImpairedElevated", "negative": "resultImpairedNormal"},
        ),

        # Atrial fibrillation pathway
        decision_node("afibStart", "What is the TR Velocity?", _TR_VELOCITY, {WILDCARD: "mvEVelocity"}),
        decision_node(
            "mvEVelocity",
            "What is the MV E velocity?",
            [
                ("positive", "≥ 100 cm/s"),
                ("negative", "< 100 cm/s"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "mvEDecelTimeAF"},
        ),
        decision_node(
            "mvEDecelTimeAF",
            "What is the MV E decel. time?",
            [
                ("negative", "> 160 ms"),
                ("positive", "≤ 160 ms"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "septalEToERatio"},
        ),
        decision_node(
            "septalEToERatio",
            "What is the SEPTAL E/e' ratio?",
            [
                ("positive", "> 11"),
                ("negative", "≤ 11"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "afibEvaluate"},
        ),
        evaluator_node(
            "afibEvaluate",
            evaluate_afib,
            targets=["resultAFNormal", "resultImpairedElevated", "afibStep2"],
        ),
        decision_node(
            "afibStep2",
            "LA Reservoir Strain?",
            [
                ("negative", "LARS ≥ 16%"),
                ("positive", "LARS < 16%"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "bmi"},
        ),
        decision_node(
            "bmi",
            "What is the BMI?",
            [
                ("positive", "BMI ≥ 30 kg/m2 (obese)"),
                ("negative", "BMI < 30 kg/m2"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "afibPvSDRatio"},
        ),
        decision_node(
            "afibPvSDRatio",
            "What is the pulmonary vein S/D ratio?",
            [
                ("negative", "S/D ratio ≥ 1"),
                ("positive", "S/D ratio < 1"),
                ("unavailable", "Unavailable"),
            ],
            {WILDCARD: "afibStep2Evaluate"},
        ),
        evaluator_node(
            "afibStep2Evaluate",
            evaluate_afib_step2,
            targets=["resultImpairedElevated", "resultAFNormal", "resultIndeterminate"],
        ),

        result_node("resultNormal", ResultKey.NORMAL),
        result_node("resultAFNormal", ResultKey.AF_NORMAL),
        result_node("resultImpairedNormal", ResultKey.IMPAIRED_NORMAL),
        result_node("resultImpairedElevated", ResultKey.IMPAIRED_ELEVATED),
        result_node("resultIndeterminate", ResultKey.INDETERMINATE),
        result_node("resultInsufficientInfo", ResultKey.INSUFFICIENT_INFO),
    ),
)
