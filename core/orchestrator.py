"""
Agent Orchestrator - Plan Execution Loop

Implements the request workflow:
1. Classify: Decide the request's intent
2. Route: Build the tool plan, kept within the classified intent
3. Gate: Refuse mutating work while the error tracker is in cooldown
4. Act: Run the plan in order, retrying failed steps; escalate to free
   tool selection after the constrained attempts are used up
5. Record: Feed the outcome back into the error tracker

The orchestrator never raises out of `run`; failures end in a terminal
AgentState.
"""

import logging
import time
from typing import List, Dict, Any, Optional, Callable, Tuple
from dataclasses import dataclass, field
from enum import Enum

from ai import call_llm_with_tools
from config import (
    SYSTEM_PROMPT,
    ESCALATION_PROMPT,
    TOOL_DEFINITIONS,
    get_tool_by_name,
    MAX_CONSTRAINED_ATTEMPTS,
    MAX_STEP_RETRIES,
    COOLDOWN_NOTICE,
    format_prompt,
)
from tools import WRITE_FILE, EDIT_FILE, TOOL_NAMES, filter_tools_for_plan, is_mutating
from .attempts import AttemptPhase, AttemptOutcome, AttemptState, initial_state, next_state
from .classifier import ClassificationResult, classify, get_intent_description
from .error_tracker import ErrorTracker, get_error_tracker
from .models import IntentType, Request
from .notifier import StatusNotifier
from .router import Plan, route, constrain_plan, build_routing_guidance

logger = logging.getLogger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class AgentStatus(Enum):
    """Agent execution status."""
    IDLE = "idle"
    THINKING = "thinking"
    CALLING_TOOL = "calling_tool"
    ESCALATED = "escalated"
    COMPLETED = "completed"
    FAILED = "failed"
    COOLDOWN = "cooldown"
    ERROR = "error"




@dataclass(frozen=True)
class ToolCallRecord:
    """
    Record of one tool invocation.

    Attributes:
        tool_name: Name of the tool that was called
        arguments: Arguments passed to the tool
        result: What the tool returned (None on failure)
        error: Error message if unsuccessful
        duration: Time taken to execute (seconds)
        iteration: 1-based position of the call within the request
        attempt: Attempt number the call belongs to
        timestamp: When the call started
    """
    tool_name: str
    arguments: Dict[str, Any]
    result: Any = None
    error: Optional[str] = None
    duration: float = 0.0
    iteration: int = 1
    attempt: int = 1
    timestamp: float = field(default_factory=time.time)

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class AgentState:
    """
    State of one request's execution.

    Tracks the routing decision, every tool call, and the terminal status.
    """
    request: Request

    # Decision
    classification: Optional[ClassificationResult] = None
    plan: Optional[Plan] = None

    # Execution tracking
    status: AgentStatus = AgentStatus.IDLE
    attempt: AttemptState = field(default_factory=initial_state)
    escalated: bool = False
    tool_calls: List[ToolCallRecord] = field(default_factory=list)

    # Results
    final_response: Optional[str] = None
    error_message: Optional[str] = None

    # Metadata
    start_time: float = field(default_factory=time.time)
    total_execution_time: float = 0.0

    def add_tool_call(self, record: ToolCallRecord):
        self.tool_calls.append(record)

    @property
    def intent(self) -> Optional[IntentType]:
        if self.plan is not None:
            return self.plan.intent
        if self.classification is not None:
            return self.classification.type
        return None

    @property
    def changed_files(self) -> List[str]:
        """Paths successfully written or edited, in call order."""
        paths = []
        for record in self.tool_calls:
            if record.success and record.tool_name in (WRITE_FILE, EDIT_FILE):
                path = record.arguments.get("path")
                if path and path not in paths:
                    paths.append(path)
        return paths

    def get_execution_summary(self) -> Dict[str, Any]:
        """Get a summary of the execution."""
        return {
            "intent": self.intent.value if self.intent else "unknown",
            "method": self.plan.method if self.plan else None,
            "status": self.status.value,
            "attempts": self.attempt.attempt,
            "escalated": self.escalated,
            "num_tool_calls": len(self.tool_calls),
            "tools_used": list(dict.fromkeys(tc.tool_name for tc in self.tool_calls)),
            "success": self.status == AgentStatus.COMPLETED,
            "execution_time": self.total_execution_time,
            "had_errors": any(not tc.success for tc in self.tool_calls),
        }


# (tool name, arguments)
ToolStep = Tuple[str, Dict[str, Any]]

# Given the failed plan, the request and the state so far, return the
# tool calls to run as [{"name": ..., "args": {...}}, ...]
EscalationPlanner = Callable[[Plan, Request, AgentState], List[Dict[str, Any]]]


def build_steps(plan: Plan) -> List[ToolStep]:
    """
    Derive concrete tool arguments from a plan's parameter hints.

    A `paths` hint is spread across repeated occurrences of the same tool
    (first read_file gets the target, the second the reference page).

    Args:
        plan: The routing plan

    Returns:
        (tool name, arguments) pairs in plan order
    """
    steps: List[ToolStep] = []
    occurrences: Dict[str, int] = {}

    for tool in plan.tool_sequence:
        index = occurrences.get(tool, 0)
        occurrences[tool] = index + 1

        hints = plan.parameter_hints.get(tool)
        if not isinstance(hints, dict):
            steps.append((tool, {}))
            continue

        args = {key: value for key, value in hints.items() if key != "paths"}
        paths = hints.get("paths")
        if isinstance(paths, list) and paths:
            args["path"] = paths[min(index, len(paths) - 1)]
        steps.append((tool, args))

    return steps


# ============================================================================
# AGENT ORCHESTRATOR
# ============================================================================

class AgentOrchestrator:
    """
    Runs routed plans against a tool registry.

    Coordinates classification, routing, cooldown gating, constrained
    execution with retries, and escalation.
    """

    def __init__(
        self,
        tool_registry: Dict[str, Callable],
        notifier: Optional[StatusNotifier] = None,
        error_tracker: Optional[ErrorTracker] = None,
        max_constrained_attempts: int = MAX_CONSTRAINED_ATTEMPTS,
        max_step_retries: int = MAX_STEP_RETRIES,
        escalation_planner: Optional[EscalationPlanner] = None,
        classifier: Callable[[str], ClassificationResult] = classify,
        router: Callable[..., Plan] = route,
        max_tool_calls: int = 25,
    ):
        """
        Initialize the orchestrator.

        Args:
            tool_registry: Dictionary mapping tool names to callable functions
            notifier: Status event publisher (events are skipped if None)
            error_tracker: Cooldown tracker (defaults to the process-wide one)
            max_constrained_attempts: Planned-sequence attempts before escalating
            max_step_retries: Retries of a failed step within one attempt
            escalation_planner: Tool selection for the escalated attempt
            classifier: Intent classifier
            router: Plan builder taking (text, context)
            max_tool_calls: Maximum total tool calls (safety limit)
        """
        self.tool_registry = tool_registry
        self.notifier = notifier
        self.error_tracker = error_tracker or get_error_tracker()
        self.max_constrained_attempts = max(1, max_constrained_attempts)
        self.max_step_retries = max(0, max_step_retries)
        self.escalation_planner = escalation_planner or self._plan_escalation
        self.classifier = classifier
        self.router = router
        self.max_tool_calls = max_tool_calls

        # Constrained attempts + the escalated one; bounds the attempt loop
        self.max_attempts = self.max_constrained_attempts + 1

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, request: Request) -> AgentState:
        """
        Classify, route and execute a request.

        Args:
            request: The user request

        Returns:
            AgentState with execution results
        """
        state = AgentState(request=request)

        try:
            state.status = AgentStatus.THINKING
            state.classification = self.classifier(request.text)
            logger.info(
                f"🎯 Intent: {state.classification.type.value} "
                f"({state.classification.method})"
            )

            plan = constrain_plan(
                self.router(request.text, request.context),
                state.classification.type,
                request.text,
                request.context,
            )
        except Exception as e:
            logger.error(f"❌ Routing failed: {e}", exc_info=True)
            state.status = AgentStatus.ERROR
            state.error_message = str(e)
            state.final_response = "I couldn't work out what to do with that. Could you rephrase it?"
            state.total_execution_time = time.time() - state.start_time
            return state

        return self._execute(plan, state)

    def execute_plan(self, plan: Plan, request: Request) -> AgentState:
        """
        Execute an already-routed plan.

        Args:
            plan: The routing plan
            request: The request it was built for

        Returns:
            AgentState with execution results
        """
        return self._execute(plan, AgentState(request=request))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, plan: Plan, state: AgentState) -> AgentState:
        state.plan = plan
        logger.info(f"📋 Plan: {plan.intent.value} → [{'→'.join(plan.tool_sequence)}] ({plan.method})")

        try:
            if plan.intent.is_mutating and self.error_tracker.is_in_cooldown():
                minutes = max(1, round(self.error_tracker.cooldown_remaining() / 60))
                state.status = AgentStatus.COOLDOWN
                state.final_response = COOLDOWN_NOTICE.format(minutes=minutes)
                self._notify("cooldown", state.final_response, {"intent": plan.intent.value})
                logger.info(f"🧊 Refusing {plan.intent.value} during cooldown")
                return self._finish(state, record=False)

            if plan.clarify_first:
                state.status = AgentStatus.COMPLETED
                state.final_response = plan.clarify_question or "Could you tell me a bit more about what you want?"
                logger.info(f"❓ Clarification needed: {state.final_response}")
                return self._finish(state, record=False)

            if not plan.tool_sequence:
                state.status = AgentStatus.COMPLETED
                return self._finish(state, record=False)

            self._run_attempts(plan, state)

        except Exception as e:
            logger.error(f"❌ Agent execution failed: {e}", exc_info=True)
            state.status = AgentStatus.ERROR
            state.error_message = str(e)
            state.final_response = (
                "I encountered an error while processing your request. "
                "Could you try again in a moment?"
            )

        return self._finish(state, record=True)

    def _run_attempts(self, plan: Plan, state: AgentState) -> None:
        attempt = initial_state()
        loops = 0

        while not attempt.is_terminal and loops < self.max_attempts:
            loops += 1
            state.attempt = attempt

            self._notify(
                "attempt",
                f"{get_intent_description(plan.intent)} (attempt {attempt.attempt})",
                {"attempt": attempt.attempt, "phase": attempt.phase.value},
            )

            if attempt.phase == AttemptPhase.ESCALATED:
                state.status = AgentStatus.ESCALATED
                state.escalated = True
                self._notify("escalated", "Trying a different approach", {"attempt": attempt.attempt})
                ok = self._run_escalated(plan, state, attempt.attempt)
            else:
                state.status = AgentStatus.CALLING_TOOL
                ok = self._run_steps(build_steps(plan), state, attempt.attempt)

            outcome = AttemptOutcome.SUCCESS if ok else AttemptOutcome.FAILURE
            attempt = next_state(attempt, outcome, self.max_constrained_attempts)
            logger.info(f"🔁 Attempt → {attempt.phase.value} ({attempt.attempt})")

        if not attempt.is_terminal:
            logger.warning(f"⚠️  Attempt limit reached ({self.max_attempts})")
            attempt = AttemptState(AttemptPhase.TERMINATED, attempt.attempt)

        state.attempt = attempt
        if attempt.phase == AttemptPhase.COMPLETED:
            state.status = AgentStatus.COMPLETED
            state.final_response = self._summarize(state)
        else:
            state.status = AgentStatus.FAILED
            failures = [tc for tc in state.tool_calls if not tc.success]
            state.error_message = failures[-1].error if failures else "No tool calls succeeded"
            state.final_response = "I couldn't complete that request. Nothing else was changed."

    def _run_steps(self, steps: List[ToolStep], state: AgentState, attempt: int) -> bool:
        """Run steps strictly in order; a step that keeps failing fails the attempt."""
        for tool_name, args in steps:
            for _ in range(self.max_step_retries + 1):
                if len(state.tool_calls) >= self.max_tool_calls:
                    logger.warning(f"⚠️  Reached max tool calls limit ({self.max_tool_calls})")
                    return False

                record = self._execute_tool(tool_name, args, len(state.tool_calls) + 1, attempt)
                state.add_tool_call(record)
                if record.success:
                    break
                logger.error(f"❌ Tool {tool_name} failed: {record.error}")
            else:
                return False

        return True

    def _run_escalated(self, plan: Plan, state: AgentState, attempt: int) -> bool:
        try:
            calls = self.escalation_planner(plan, state.request, state)
        except Exception as e:
            logger.error(f"❌ Escalation planning failed: {e}")
            return False

        steps = [
            (call["name"], dict(call.get("args") or {}))
            for call in calls or []
            if call.get("name")
        ]
        if not plan.intent.is_mutating:
            blocked = [name for name, _ in steps if is_mutating(name)]
            if blocked:
                logger.warning(f"⚠️  Dropping mutating escalation calls for {plan.intent.value}: {blocked}")
            steps = [(name, args) for name, args in steps if not is_mutating(name)]

        if not steps:
            logger.info("Escalation produced no tool calls")
            return False

        return self._run_steps(steps, state, attempt)

    def _plan_escalation(self, plan: Plan, request: Request, state: AgentState) -> List[Dict[str, Any]]:
        """
        Let the model pick tools freely, with the failed plan as guidance.

        Plans that must not mutate are only offered non-mutating tools.

        Args:
            plan: The plan whose constrained attempts failed
            request: The user request
            state: Execution state so far

        Returns:
            Tool calls proposed by the model
        """
        history = "\n".join(
            f"- {'✅' if tc.success else '❌'} {tc.tool_name}({tc.arguments}): "
            f"{str(tc.result)[:100] if tc.success else tc.error}"
            for tc in state.tool_calls
        ) or "- none"

        prompt = format_prompt(
            ESCALATION_PROMPT,
            message=request.text,
            guidance=build_routing_guidance(plan),
            history=history,
        )

        if plan.intent.is_mutating:
            declarations = TOOL_DEFINITIONS
        else:
            declarations = [get_tool_by_name(name) for name in TOOL_NAMES if not is_mutating(name)]

        result = call_llm_with_tools(
            prompt=prompt,
            tools=filter_tools_for_plan(declarations, plan.tool_sequence),
            system_instruction=SYSTEM_PROMPT,
            temperature=0.3,  # Low temp for consistent tool selection
            metadata={"phase": "escalated", "intent": plan.intent.value},
        )
        return result.get("tool_calls", [])

    def _execute_tool(self, tool_name: str, tool_args: Dict[str, Any], iteration: int, attempt: int) -> ToolCallRecord:
        """
        Execute a specific tool with given arguments.

        A tool fails when it raises, is missing from the registry, or
        returns a dict with `success: False`.

        Args:
            tool_name: Name of the tool to execute
            tool_args: Arguments to pass to the tool
            iteration: Position of the call within the request
            attempt: Attempt number

        Returns:
            ToolCallRecord with execution outcome
        """
        start_time = time.time()
        self._notify("tool_start", f"Running {tool_name}", {"tool": tool_name, "iteration": iteration})
        logger.info(f"🔧 Calling tool: {tool_name} with args: {tool_args}")

        result = None
        error = None

        tool_func = self.tool_registry.get(tool_name)
        if tool_func is None:
            error = f"Tool '{tool_name}' not found in registry"
        else:
            try:
                result = tool_func(**tool_args)
            except Exception as e:
                logger.error(f"Tool {tool_name} execution failed: {e}", exc_info=True)
                error = str(e) or type(e).__name__
            else:
                if isinstance(result, dict) and result.get("success") is False:
                    error = str(result.get("error") or f"{tool_name} reported failure")

        duration = time.time() - start_time
        record = ToolCallRecord(
            tool_name=tool_name,
            arguments=dict(tool_args),
            result=result if error is None else None,
            error=error,
            duration=duration,
            iteration=iteration,
            attempt=attempt,
            timestamp=start_time,
        )

        data = {"tool": tool_name, "iteration": iteration, "elapsed": round(duration, 3)}
        if record.success:
            self._notify("tool_complete", f"Finished {tool_name}", data)
        else:
            self._notify("tool_error", f"{tool_name} failed: {error}", data)

        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify(self, category: str, message: str, data: Dict[str, Any]) -> None:
        if self.notifier is not None:
            self.notifier.publish(category, message, data)

    def _finish(self, state: AgentState, record: bool) -> AgentState:
        if record and state.plan is not None:
            self.error_tracker.record_outcome(state.plan.intent, state.status == AgentStatus.COMPLETED)
        state.total_execution_time = time.time() - state.start_time
        logger.info(
            f"✅ Request finished: {state.status.value} after {len(state.tool_calls)} tool calls"
            if state.status == AgentStatus.COMPLETED
            else f"🛑 Request finished: {state.status.value} after {len(state.tool_calls)} tool calls"
        )
        return state

    @staticmethod
    def _summarize(state: AgentState) -> str:
        done = [tc.tool_name for tc in state.tool_calls if tc.success]
        summary = f"Done: {' → '.join(done)}"
        if state.changed_files:
            summary += f" ({', '.join(state.changed_files)})"
        return summary


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

def run_agent_loop(
    text: str,
    tool_registry: Dict[str, Callable],
    requester_id: Optional[str] = None,
    channel_id: Optional[str] = None,
    notifier: Optional[StatusNotifier] = None,
    error_tracker: Optional[ErrorTracker] = None,
) -> AgentState:
    """
    Convenience function to run the agent loop.

    Args:
        text: User's input message
        tool_registry: Dictionary of available tools
        requester_id: Who sent the message
        channel_id: Where it was sent
        notifier: Status event publisher
        error_tracker: Cooldown tracker

    Returns:
        Final AgentState with results
    """
    orchestrator = AgentOrchestrator(
        tool_registry=tool_registry,
        notifier=notifier,
        error_tracker=error_tracker,
    )

    return orchestrator.run(Request(text=text, requester_id=requester_id, channel_id=channel_id))
