from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ValidationError

from backend.app.models.configuration import ProductType
from backend.app.schemas.configurations import ProductConfigurationCreate
from backend.app.services.pricing import PriceEstimate, estimate
from backend.app.wizard.drafts import (
    AUTOSAVE_DELAY,
    DRAFT_TTL,
    Clock,
    Draft,
    DraftAutosaver,
    DraftStore,
    InMemoryDraftStore,
    utcnow,
)
from backend.app.wizard.steps import (
    CLADDING_MATERIALS,
    STEP_MODELS,
    STEP_NAMES,
    BathroomConfig,
    CladdingConfig,
    ExtrasConfig,
    FloorConfig,
    OpeningsConfig,
    SizeConfig,
    StepState,
    cladding_area_sqm,
    evaluate_step,
    mm_to_m,
)

logger = logging.getLogger(__name__)

# Electrical fit-out every wizard-built room starts with
DEFAULT_SWITCHES = 2
DEFAULT_SOCKETS = 4


class WizardStateMachine:
    """Step navigation, derived values and draft autosave for the configurator.

    Forward navigation needs every earlier step to be valid; going back is
    always allowed. Each edit or move schedules a debounced draft save;
    ``on_visibility_hidden()`` and ``on_unload()`` save immediately.
    """

    def __init__(
        self,
        store: DraftStore | None = None,
        *,
        clock: Clock = utcnow,
        autosave_delay: timedelta = AUTOSAVE_DELAY,
        draft_ttl: timedelta = DRAFT_TTL,
        product_type: ProductType = ProductType.GARDEN_ROOM,
    ) -> None:
        self.store = store if store is not None else InMemoryDraftStore()
        self.clock = clock
        self.draft_ttl = draft_ttl
        self.product_type = product_type
        self.autosaver = DraftAutosaver(
            self.store, self.snapshot, delay=autosave_delay, clock=clock
        )
        self.current_index = 0
        self.steps: dict[str, StepState] = {
            name: evaluate_step(name, STEP_MODELS[name]()) for name in STEP_NAMES
        }
        self._recompute_dependents()

    # ─── State ────────────────────────────────────────────────────────────────

    @property
    def current_step(self) -> str:
        return STEP_NAMES[self.current_index]

    def config(self, name: str) -> Any:
        return self.steps[name].config

    def is_complete(self) -> bool:
        return self.steps["summary"].is_valid

    # ─── Navigation ───────────────────────────────────────────────────────────

    def can_navigate_to(self, index: int) -> bool:
        if not 0 <= index < len(STEP_NAMES):
            return False
        if index <= self.current_index:
            return True
        return all(self.steps[STEP_NAMES[i]].is_valid for i in range(index))

    def go_to(self, index: int) -> bool:
        if not self.can_navigate_to(index):
            return False
        self.current_index = index
        self.autosaver.schedule()
        return True

    def next(self) -> bool:
        return self.go_to(self.current_index + 1)

    def previous(self) -> bool:
        return self.go_to(self.current_index - 1)

    # ─── Editing ──────────────────────────────────────────────────────────────

    def update_step(self, name: str, config: BaseModel | dict[str, Any]) -> StepState:
        if name not in STEP_MODELS or name == "summary":
            raise ValueError(f"Step {name!r} has no editable config")
        model = STEP_MODELS[name]
        if isinstance(config, dict):
            config = model.model_validate(config)
        self.steps[name] = evaluate_step(name, config)
        self._recompute_dependents()
        self.autosaver.schedule()
        return self.steps[name]

    def _recompute_dependents(self) -> None:
        size: SizeConfig = self.config("size")
        openings: OpeningsConfig = self.config("openings")
        cladding: CladdingConfig = self.config("cladding")
        floor: FloorConfig = self.config("floor")
        extras: ExtrasConfig = self.config("extras")

        self.steps["cladding"] = evaluate_step(
            "cladding",
            cladding.model_copy(update={"area_sqm": cladding_area_sqm(size, openings)}),
        )
        self.steps["floor"] = evaluate_step(
            "floor", floor.model_copy(update={"area_sqm": size.floor_area_sqm})
        )
        self.steps["extras"] = evaluate_step(
            "extras", extras.model_copy(update={"building_area_sqm": size.floor_area_sqm})
        )
        self._refresh_summary()

    def _refresh_summary(self) -> None:
        errors = list(self.steps["size"].errors)
        cladding: CladdingConfig = self.config("cladding")
        if cladding.material not in CLADDING_MATERIALS or not (cladding.color or "").strip():
            errors.append("Cladding material and colour must be chosen")
        self.steps["summary"] = StepState(
            config=self.config("summary"), is_valid=not errors, errors=errors
        )

    # ─── Drafts ───────────────────────────────────────────────────────────────

    def snapshot(self) -> Draft:
        return Draft(
            step_index=self.current_index,
            steps={
                name: state.config.model_dump(mode="json")
                for name, state in self.steps.items()
                if name != "summary"
            },
            saved_at=self.clock(),
        )

    def tick(self) -> bool:
        return self.autosaver.tick()

    def on_visibility_hidden(self) -> None:
        self.autosaver.flush()

    def on_unload(self) -> None:
        self.autosaver.flush()

    def load_resumable(self) -> Draft | None:
        """Return the stored draft if there is one and it has not expired."""
        draft = self.store.load()
        if draft is None:
            return None
        if draft.is_expired(self.clock(), self.draft_ttl):
            logger.info("Discarding wizard draft saved at %s", draft.saved_at)
            self.store.clear()
            return None
        return draft

    def resume(self, draft: Draft | None = None) -> bool:
        """Restore a draft. Nothing changes unless every stored step is valid."""
        if draft is None:
            draft = self.load_resumable()
        elif draft.is_expired(self.clock(), self.draft_ttl):
            logger.info("Discarding wizard draft saved at %s", draft.saved_at)
            self.store.clear()
            return False
        if draft is None:
            return False

        restored: dict[str, StepState] = {}
        try:
            for name, data in draft.steps.items():
                if name in STEP_MODELS and name != "summary":
                    restored[name] = evaluate_step(name, STEP_MODELS[name].model_validate(data))
        except ValidationError as e:
            logger.warning("Discarding unreadable wizard draft: %s", e)
            self.store.clear()
            return False

        self.steps.update(restored)
        self._recompute_dependents()
        self.current_index = max(0, min(draft.step_index, len(STEP_NAMES) - 1))
        self.autosaver.cancel()
        return True

    def decline_resume(self) -> None:
        self.store.clear()
        self.autosaver.cancel()

    # ─── Conversion ───────────────────────────────────────────────────────────

    def to_configuration_input(self) -> ProductConfigurationCreate:
        """Build the submission payload. Raises ``ValueError`` when incomplete."""
        if not self.is_complete():
            raise ValueError("; ".join(self.steps["summary"].errors))

        size: SizeConfig = self.config("size")
        openings: OpeningsConfig = self.config("openings")
        cladding: CladdingConfig = self.config("cladding")
        bathroom: BathroomConfig = self.config("bathroom")
        floor: FloorConfig = self.config("floor")
        extras: ExtrasConfig = self.config("extras")

        def glazing(items: list) -> list[dict[str, Any]]:
            return [
                {"width_m": mm_to_m(o.width_mm), "height_m": mm_to_m(o.height_mm)} for o in items
            ]

        return ProductConfigurationCreate.model_validate({
            "product_type": self.product_type.value,
            "size": {"width_m": mm_to_m(size.width_mm), "depth_m": mm_to_m(size.depth_mm)},
            "cladding": {"area_sqm": cladding.area_sqm},
            "floor": {"type": floor.type, "area_sqm": floor.area_sqm},
            "bathroom": {
                "half": bathroom.count if bathroom.type == "half" else 0,
                "three_quarter": bathroom.count if bathroom.type == "three-quarter" else 0,
            },
            "electrical": {"switches": DEFAULT_SWITCHES, "sockets": DEFAULT_SOCKETS},
            "glazing": {
                "windows": glazing(openings.windows),
                "external_doors": glazing(openings.external_doors),
                "skylights": glazing(openings.skylights),
            },
            "extras": {
                "other": [
                    {"title": e.title, "cost": e.unit_price * e.quantity}
                    for e in extras.selected + extras.custom
                ],
            },
            "notes": f"Cladding: {cladding.material}, {cladding.color}",
        })

    def price(self) -> PriceEstimate:
        return estimate(self.to_configuration_input())
