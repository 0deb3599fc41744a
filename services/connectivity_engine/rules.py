# services/connectivity_engine/rules.py
# Knowledge weights and the Action/Attitude weight tables for the eight soil threat categories.
#
# Every Action and Attitude question is scored through a WeightTable: the respondent's selected
# option picks a row, a context class derived from sibling answers on the same page picks a column.
# Classifiers are plain functions of the answer mapping so each table can be tested on its own.

import logging
from typing import Callable, Dict, FrozenSet, Iterable, Mapping, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ANY = "any"


def selected(answers: Mapping, key: str) -> FrozenSet[str]:
    """Returns the options chosen for a question as a set, whatever shape the answer has."""
    value = answers.get(key)
    if value is None or value == "":
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    return frozenset(value)


class WeightTable:
    """
    Lookup table mapping (selected option, context class) to the effective weight of a
    single-select Action or Attitude question.
    """

    def __init__(
        self,
        question_key: str,
        rows: Dict[str, Tuple[int, ...]],
        contexts: Sequence[str] = (ANY,),
        classify: Optional[Callable[[Mapping], str]] = None,
        context_keys: Iterable[str] = (),
    ):
        self.question_key = question_key
        self.contexts = tuple(contexts)
        self.context_keys = tuple(context_keys)
        self._classify = classify
        for option, weights in rows.items():
            if len(weights) != len(self.contexts):
                raise ValueError(
                    f"Row '{option}' of table '{question_key}' has {len(weights)} weights for {len(self.contexts)} contexts"
                )
        self.weights = {option: dict(zip(self.contexts, weights)) for option, weights in rows.items()}

    @property
    def options(self) -> Tuple[str, ...]:
        return tuple(self.weights)

    def context(self, answers: Mapping) -> str:
        if self._classify is None:
            return ANY
        label = self._classify(answers)
        if label not in self.contexts:
            raise ValueError(f"Classifier for '{self.question_key}' returned unknown context '{label}'")
        return label

    def weight(self, option: str, context: str) -> int:
        return self.weights[option][context]

    def score(self, answers: Mapping) -> int:
        """Weight of the selected option in the current context; unanswered scores 0."""
        option = answers.get(self.question_key)
        if option is None:
            return 0
        return self.weight(option, self.context(answers))


class CategoryRules(NamedTuple):
    code: str
    knowledge_key: str
    knowledge_weights: Dict[str, int]
    action: WeightTable
    attitude: WeightTable

    def input_keys(self) -> Tuple[str, ...]:
        """Every answer key that can change this category's score, in a stable order."""
        keys = [self.knowledge_key]
        for table in (self.action, self.attitude):
            keys.append(table.question_key)
            keys.extend(table.context_keys)
        return tuple(dict.fromkeys(keys))


# --- Context classifiers ---

def classify_ph(answers: Mapping) -> str:
    ph = answers.get("a_ph")
    if ph in ("acidic", "neutral", "alkaline"):
        return ph
    return "unknown"


def classify_structure_practices_for_action(answers: Mapping) -> str:
    practices = selected(answers, "sd_val")
    if not practices or "none" in practices:
        return "no_practices"
    if practices == {"other"}:
        return "other_only"
    if practices & {"rotational-grazing", "controlled-traffic"}:
        return "compaction"
    return "other_practices"


def classify_structure_practices_for_attitude(answers: Mapping) -> str:
    # Checked in order; the first matching class wins.
    practices = selected(answers, "sd_val")
    if not practices or "none" in practices:
        return "no_practices"
    if practices == {"other"}:
        return "other_only"
    if practices & {"rotational-grazing", "stocking-rates", "controlled-traffic"}:
        return "grazing_or_traffic"
    has_other = "other" in practices
    if "minimal-tillage" in practices:
        return "tillage_with_other" if has_other else "tillage"
    if has_other:
        return "amendment_with_other"
    if "clay-or-sand" in practices:
        return "clay_or_sand"
    return "amendment"


def classify_salinity(answers: Mapping) -> str:
    salinity = answers.get("s_val")
    if salinity == "none":
        return "none"
    if salinity is None or salinity == "unknown":
        return "unknown"
    return "present"


def classify_biodiversity_for_action(answers: Mapping) -> str:
    practices = selected(answers, "hl_val")
    if not practices or "no-practices" in practices:
        return "no_practices"
    if practices & {"soil-cover", "organic-matter", "rotations"}:
        return "organic_practices"
    return "other_practices"


def classify_biodiversity_for_attitude(answers: Mapping) -> str:
    practices = selected(answers, "hl_val")
    if "no-practices" in practices:
        return "no_practices"
    if "minimise-pesticides" in practices:
        return "pesticides"
    return "other"


def classify_nutrient_system(answers: Mapping) -> str:
    if answers.get("nm_val2") in (None, "high-input"):
        return "high_input_or_unanswered"
    return "low_input"


def classify_nutrient_inputs(answers: Mapping) -> str:
    forms = selected(answers, "nm_val")
    high_input = answers.get("nm_val2") == "high-input"
    synthetic = "synthetic" in forms
    if high_input and synthetic:
        return "high_input_synthetic"
    if "none" in forms:
        return "no_fertiliser_high_input" if high_input else "no_inputs"
    if high_input or synthetic:
        return "high_input_or_synthetic"
    return "low_input"


def classify_soil_water_for_action(answers: Mapping) -> str:
    problem = answers.get("sw_val")
    system = answers.get("sw_val2")
    irrigated_or_unanswered = system in (None, "irrigated")
    if problem is None:
        return "unanswered"
    if problem == "not-sure":
        return "not_sure_irrigated" if irrigated_or_unanswered else "not_sure_rainfed"
    if problem == "too-wet" or irrigated_or_unanswered:
        return "wet_or_irrigated"
    return "dry_or_rainfed"


def classify_soil_water_for_attitude(answers: Mapping) -> str:
    return "not_sure" if answers.get("sw_val") == "not-sure" else "other"


def classify_carbon_practices(answers: Mapping) -> str:
    practices = selected(answers, "dc_val")
    if not practices or "none" in practices:
        return "no_practices"
    return "practices"


# --- Erosion ---

EROSION = CategoryRules(
    code="E",
    knowledge_key="e_k",
    knowledge_weights={"soil-cover": 4, "windbreaks": 3, "landscape-position": 2, "shear-test": 1, "familiar": 0},
    action=WeightTable(
        "e_ac",
        rows={
            "not-considered": (1,),
            "cover-when-possible": (2,),
            "cover-priority": (3,),
            "topography-mapping": (4,),
        },
    ),
    attitude=WeightTable(
        "e_at",
        rows={
            "not-needed": (1,),
            "prohibitive": (2,),
            "minimise": (3,),
            "topsoil-asset": (4,),
        },
    ),
)

# --- Acidification ---

PH_CONTEXTS = ("acidic", "neutral", "alkaline", "unknown")

ACIDIFICATION = CategoryRules(
    code="A",
    knowledge_key="a_k",
    knowledge_weights={"ph-threshold": 4, "nutrient-access": 3, "alkaline-acidification": 2, "buffering-capacity": 1, "familiar": 0},
    action=WeightTable(
        "a_ac",
        contexts=PH_CONTEXTS,
        classify=classify_ph,
        context_keys=("a_ph",),
        rows={
            #                      acidic neutral alkaline unknown
            "not-measured":       (1, 1, 1, 1),
            "occasional-test":    (1, 1, 2, 0),
            "regular-monitoring": (3, 3, 3, 0),
            "zoned-sampling":     (4, 4, 4, 0),
        },
    ),
    attitude=WeightTable(
        "a_at",
        contexts=PH_CONTEXTS,
        classify=classify_ph,
        context_keys=("a_ph",),
        rows={
            "not-needed":        (0, 0, 1, 0),
            "rarely-considered": (0, 1, 2, 0),
            "if-cost-effective": (2, 3, 3, 0),
            "everyone-monitors": (4, 4, 4, 0),
        },
    ),
)

# --- Structural decline ---

STRUCTURAL_DECLINE = CategoryRules(
    code="SD",
    knowledge_key="sd_k",
    knowledge_weights={"pore-space": 4, "sodicity": 3, "slake-test": 2, "machinery-compaction": 1, "familiar": 0},
    action=WeightTable(
        "sd_ac",
        contexts=("no_practices", "other_only", "compaction", "other_practices"),
        classify=classify_structure_practices_for_action,
        context_keys=("sd_val",),
        rows={
            "not-considered":      (1, 0, 0, 0),
            "root-indicator":      (1, 1, 2, 2),
            "minimise-compaction": (0, 1, 3, 1),
            "assessed":            (4, 4, 4, 4),
        },
    ),
    attitude=WeightTable(
        "sd_at",
        contexts=(
            "no_practices", "other_only", "grazing_or_traffic", "tillage_with_other",
            "tillage", "amendment_with_other", "clay_or_sand", "amendment",
        ),
        classify=classify_structure_practices_for_attitude,
        context_keys=("sd_val",),
        rows={
            "not-recorded":       (1, 1, 1, 1, 0, 1, 0, 0),
            "prevent-compaction": (0, 1, 2, 2, 2, 1, 1, 0),
            "long-term":          (0, 2, 3, 3, 3, 3, 3, 3),
            "central":            (0, 3, 4, 4, 4, 4, 4, 4),
        },
    ),
)

# --- Salinisation ---

SALINITY_CONTEXTS = ("none", "unknown", "present")

SALINISATION = CategoryRules(
    code="S",
    knowledge_key="s_k",
    knowledge_weights={"salt-accumulation": 4, "rootzone-salinisation": 3, "water-absorption": 2, "sensor-accuracy": 1, "familiar": 0},
    action=WeightTable(
        "s_ac",
        contexts=SALINITY_CONTEXTS,
        classify=classify_salinity,
        context_keys=("s_val",),
        rows={
            #                      none unknown present
            "unaware":            (1, 1, 0),
            "known-problem-only": (2, 2, 2),
            "perennials":         (3, 0, 3),
            "monitoring":         (4, 0, 4),
        },
    ),
    attitude=WeightTable(
        "s_at",
        contexts=SALINITY_CONTEXTS,
        classify=classify_salinity,
        context_keys=("s_val",),
        rows={
            "not-limiter":             (1, 1, 0),
            "concerned":               (2, 2, 2),
            "monitor-with-production": (3, 0, 3),
            "community-programs":      (4, 0, 4),
        },
    ),
)

# --- Habitat loss / biodiversity ---

HABITAT_LOSS = CategoryRules(
    code="HL",
    knowledge_key="hl_k",
    knowledge_weights={"soil-functions": 4, "acidic-fungi": 3, "mixed-inputs": 2, "mycorrhiza": 1, "familiar": 0},
    action=WeightTable(
        "hl_ac",
        contexts=("no_practices", "organic_practices", "other_practices"),
        classify=classify_biodiversity_for_action,
        context_keys=("hl_val",),
        rows={
            "root-disease":         (1, 1, 1),
            "need-information":     (2, 2, 2),
            "build-organic-matter": (0, 3, 1),
            "work-with-farmers":    (0, 4, 4),
        },
    ),
    attitude=WeightTable(
        "hl_at",
        contexts=("no_practices", "pesticides", "other"),
        classify=classify_biodiversity_for_attitude,
        context_keys=("hl_val",),
        rows={
            "no-need":            (1, 0, 1),
            "productivity-focus": (2, 2, 2),
            "in-sympathy":        (0, 3, 3),
            "imperative":         (0, 4, 4),
        },
    ),
)

# --- Nutrient management ---

NUTRIENT_MANAGEMENT = CategoryRules(
    code="NM",
    knowledge_key="nm_k",
    knowledge_weights={"macro-nutrients": 4, "root-limits": 3, "critical-range": 2, "nutrient-cycling": 1, "familiar": 0},
    action=WeightTable(
        "nm_ac",
        contexts=("high_input_or_unanswered", "low_input"),
        classify=classify_nutrient_system,
        context_keys=("nm_val2",),
        rows={
            "fixed-rates":    (0, 1),
            "advisor-rates":  (2, 2),
            "seasonal-rates": (3, 3),
            "precision":      (4, 4),
        },
    ),
    attitude=WeightTable(
        "nm_at",
        contexts=("high_input_synthetic", "no_fertiliser_high_input", "no_inputs", "high_input_or_synthetic", "low_input"),
        classify=classify_nutrient_inputs,
        context_keys=("nm_val", "nm_val2"),
        rows={
            "manure-legumes":       (0, 0, 1, 0, 1),
            "fertiliser-first":     (2, 0, 0, 2, 2),
            "biology-and-moisture": (1, 3, 3, 3, 3),
            "feed-soil-biota":      (2, 4, 4, 4, 4),
        },
    ),
)

# --- Soil water ---

SOIL_WATER = CategoryRules(
    code="SW",
    knowledge_key="sw_k",
    knowledge_weights={"plant-available-water": 4, "storage-factors": 3, "saturated-soil": 2, "climate-models": 1, "familiar": 0},
    action=WeightTable(
        "sw_ac",
        contexts=("unanswered", "not_sure_irrigated", "not_sure_rainfed", "wet_or_irrigated", "dry_or_rainfed"),
        classify=classify_soil_water_for_action,
        context_keys=("sw_val", "sw_val2"),
        rows={
            "not-managed":          (0, 0, 1, 0, 1),
            "rainfall-forecasts":   (2, 2, 2, 2, 2),
            "moisture-sensors":     (0, 0, 0, 3, 3),
            "water-use-efficiency": (0, 0, 0, 4, 4),
        },
    ),
    attitude=WeightTable(
        "sw_at",
        contexts=("not_sure", "other"),
        classify=classify_soil_water_for_attitude,
        context_keys=("sw_val",),
        rows={
            "no-interest":   (1, 0),
            "too-expensive": (2, 2),
            "confident":     (1, 3),
            "watershed":     (2, 4),
        },
    ),
)

# --- Decarbonisation ---

CARBON_CONTEXTS = ("no_practices", "practices")

DECARBONISATION = CategoryRules(
    code="DC",
    knowledge_key="dc_k",
    knowledge_weights={"landscape-carbon": 4, "root-carbon": 3, "nutrient-limits": 2, "deep-carbon": 1, "familiar": 0},
    action=WeightTable(
        "dc_ac",
        contexts=CARBON_CONTEXTS,
        classify=classify_carbon_practices,
        context_keys=("dc_val",),
        rows={
            "not-priority":  (0, 1),
            "incidental":    (0, 2),
            "in-plans":      (0, 3),
            "high-priority": (0, 4),
        },
    ),
    attitude=WeightTable(
        "dc_at",
        contexts=CARBON_CONTEXTS,
        classify=classify_carbon_practices,
        context_keys=("dc_val",),
        rows={
            "no-value":           (1, 1),
            "too-expensive":      (2, 2),
            "confident":          (0, 3),
            "long-term-security": (0, 4),
        },
    ),
)

CATEGORY_RULES: Dict[str, CategoryRules] = {
    rules.code: rules
    for rules in (
        EROSION, ACIDIFICATION, STRUCTURAL_DECLINE, SALINISATION,
        HABITAT_LOSS, NUTRIENT_MANAGEMENT, SOIL_WATER, DECARBONISATION,
    )
}
