from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from loguru import logger

from capital_assets.validation.checks import period_warnings, validate_inputs

from .fees import effective_mer_percent
from .inputs import AppSettings, SimulationInputs
from .projection import ProjectionResult, project
from .returns import SeedSource
from .simulator import CancellationToken, MonteCarloResult, run_monte_carlo

IDLE = "idle"
RUNNING = "running"
COMPLETE = "complete"


class SimulationInProgressError(RuntimeError):
    """A Monte Carlo run was requested while another is still running."""


@dataclass
class SimulationSession:
    """Calculator state kept between calls, including cached results and the running flag.

    ``inputs`` holds the submitted values, so its MER is the manual one; runs use
    ``effective_inputs``, where a positive portfolio MER takes over.
    """

    inputs: SimulationInputs
    settings: AppSettings = field(default_factory=AppSettings)
    calculated_mer_percent: Optional[float] = None
    is_running: bool = False
    monte_carlo_result: Optional[MonteCarloResult] = None
    _projection: Optional[ProjectionResult] = field(default=None, repr=False)

    @property
    def state(self) -> str:
        if self.is_running:
            return RUNNING
        return COMPLETE if self.monte_carlo_result is not None else IDLE

    def update_inputs(self, inputs: SimulationInputs) -> None:
        self.inputs = inputs
        self.clear()

    @property
    def effective_inputs(self) -> SimulationInputs:
        mer = effective_mer_percent(self.inputs.apply_mer, self.inputs.effective_mer_percent, self.calculated_mer_percent)
        return replace(self.inputs, effective_mer_percent=mer)

    def set_calculated_mer(self, mer_percent: Optional[float]) -> None:
        self.calculated_mer_percent = mer_percent
        self.clear()

    def clear(self) -> None:
        self.monte_carlo_result = None
        self._projection = None

    def projection(self) -> ProjectionResult:
        if self._projection is None:
            inputs = self.effective_inputs
            validate_inputs(inputs)
            for warning in period_warnings(inputs):
                logger.warning(warning)
            self._projection = project(inputs)
        return self._projection

    def run_monte_carlo(
        self,
        num_runs: Optional[int] = None,
        seed_source: Optional[SeedSource] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> MonteCarloResult:
        if self.is_running:
            raise SimulationInProgressError("A Monte Carlo simulation is already running.")
        inputs = self.effective_inputs
        validate_inputs(inputs)
        runs = num_runs if num_runs is not None else self.settings.monte_carlo_runs
        self.is_running = True
        self.monte_carlo_result = None
        try:
            result = run_monte_carlo(
                inputs,
                runs,
                seed_source=seed_source,
                max_workers=self.settings.max_workers,
                cancel_token=cancel_token,
            )
        finally:
            self.is_running = False
        self.monte_carlo_result = result
        return result
