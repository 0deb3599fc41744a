from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Dict, Optional, Literal

QuestionKind = Literal["single", "multi", "text", "number", "postcode"]


class AnswerOption(BaseModel):
    id: str
    text: str


class Question(BaseModel):
    key: str
    kind: QuestionKind
    text: str
    required: bool = True
    options: List[AnswerOption] = Field(default_factory=list)
    exclusive: List[str] = Field(default_factory=list)  # Options that cannot be combined with any other
    other_key: Optional[str] = None  # Free text required when the "other" option is chosen
    other_max_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    town_key: Optional[str] = None  # Postcode questions carry the chosen town under this key
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_options(self):
        if self.kind in ("single", "multi") and not self.options:
            raise ValueError(f"Question '{self.key}' needs options")
        option_ids = {option.id for option in self.options}
        unknown = set(self.exclusive) - option_ids
        if unknown:
            raise ValueError(f"Exclusive options {sorted(unknown)} are not options of '{self.key}'")
        if self.other_key and "other" not in option_ids:
            raise ValueError(f"Question '{self.key}' has an other_key but no 'other' option")
        if (self.required or self.other_key) and not self.message:
            raise ValueError(f"Gated question '{self.key}' has no validation message")
        return self

    def option_ids(self) -> List[str]:
        return [option.id for option in self.options]

    def answer_keys(self) -> List[str]:
        """Keys this question writes into an answer set."""
        keys = [self.key]
        if self.other_key:
            keys.append(self.other_key)
        if self.town_key:
            keys.append(self.town_key)
        return keys


class SurveyPage(BaseModel):
    index: int
    id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    stamp: Optional[Literal["end_time", "submission_time"]] = None  # Timestamp written when the page commits
    questions: List[Question] = Field(default_factory=list)

    def answer_keys(self) -> List[str]:
        return [key for question in self.questions for key in question.answer_keys()]


class Category(BaseModel):
    code: str
    name: str
    page: int


class SurveyCatalog(BaseModel):
    categories: List[Category]
    pages: List[SurveyPage]

    def page(self, index: int) -> SurveyPage:
        for page in self.pages:
            if page.index == index:
                return page
        raise KeyError(index)

    def has_page(self, index: int) -> bool:
        return any(page.index == index for page in self.pages)

    def category_codes(self) -> List[str]:
        return [category.code for category in self.categories]

    def questions(self) -> List[Question]:
        return [question for page in self.pages for question in page.questions]


class CategoryScore(BaseModel):
    """Knowledge/Action/Attitude sub-scores for one category and the derived total."""
    model_config = ConfigDict(frozen=True)

    category: str
    knowledge: int
    action: int
    attitude: int
    total: int

    def as_columns(self) -> Dict[str, int]:
        prefix = self.category.lower()
        return {
            f"{prefix}_knowledge": self.knowledge,
            f"{prefix}_action": self.action,
            f"{prefix}_attitude": self.attitude,
            f"{prefix}_total": self.total,
        }


class ValidationResult(BaseModel):
    page: int
    passed: bool
    messages: List[str] = Field(default_factory=list)


# --- Report configuration (assets/report_bands.yml) ---

class StageDefinitions(BaseModel):
    knowledge: str
    action: str
    attitude: str


class SupportNote(BaseModel):
    text: str
    link_label: Optional[str] = None
    url: Optional[str] = None


class ReportBand(BaseModel):
    id: str
    upper_bound: Optional[float] = None  # Exclusive; the open top band has none
    headline: str
    narrative: str
    lists_focus_areas: bool = False
    stages: StageDefinitions
    support: SupportNote


class ReportConfig(BaseModel):
    version: str
    bands: List[ReportBand]
    focus_labels: Dict[str, str]
    closing_message: str
    decline_message: str


# Custom Error Classes
class IncompleteAssessmentError(ValueError):
    """Raised when a page's validation gate refuses a forward transition."""

    def __init__(self, messages: List[str], page: Optional[int] = None):
        self.messages = list(messages)
        self.page = page
        super().__init__("; ".join(self.messages) or "Page is incomplete")


class InvalidSubmissionError(ValueError):
    """Custom exception for invalid submission data (e.g., bad answer keys)."""
    pass


class InvalidTransitionError(ValueError):
    """Raised for navigation that the current page does not allow."""
    pass
