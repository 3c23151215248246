from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .school import LabSlottedClass


class NoLabs(BaseModel):
    """The class has no usable laboratory preference; it never enters the search."""
    kind: Literal["no_labs"] = "no_labs"
    class_id: int


class Missing(BaseModel):
    """The class could not be placed even at full relaxation and was dropped."""
    kind: Literal["missing"] = "missing"
    class_id: int


class UndesiredLab(BaseModel):
    """Soft warning: placed, but not in the first-choice laboratory."""
    kind: Literal["undesired_lab"] = "undesired_lab"
    class_id: int
    was: int  # first-preference lab id
    got: int  # assigned lab id


SolveError = Annotated[Union[NoLabs, Missing], Field(discriminator="kind")]


class Solution(BaseModel):
    slotted: List[LabSlottedClass] = Field(default_factory=list)
    errors: List[SolveError] = Field(default_factory=list)
    warnings: List[UndesiredLab] = Field(default_factory=list)

    def placement_of(self, class_id: int) -> Optional[LabSlottedClass]:
        for placed in self.slotted:
            if placed.class_id == class_id:
                return placed
        return None

    def missing(self) -> List[int]:
        return [e.class_id for e in self.errors if isinstance(e, Missing)]

    def without_labs(self) -> List[int]:
        return [e.class_id for e in self.errors if isinstance(e, NoLabs)]
