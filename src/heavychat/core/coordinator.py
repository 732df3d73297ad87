"""
Execution coordinator for heavy mode runs.

This module drives one run of the agent graph:
- ExecutionCoordinator: executes rank groups in ascending order, every agent
  of a rank concurrently, with a join barrier between ranks
- run_heavy_mode: the run boundary used by the chat session

A single failing agent fails the whole run. Nothing is retried and no
partial output survives a failure.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from .aggregator import aggregate_results
from .composer import compose_input, select_history
from .graph import AgentGraph
from .llm_client import BaseLLMClient
from .scheduler import RankGroup, schedule_ranks
from .workflow_types import (
    AgentNode,
    AgentResponse,
    ChatTurn,
    Configuration,
    GenerationError,
    RunResult,
    RunState,
)

logger = logging.getLogger(__name__)


class ExecutionCoordinator:
    """
    Runs one heavy mode invocation.

    The coordinator exclusively owns the run-scoped output mapping and the
    response list. It serves exactly one run; create a new instance per
    user query.
    """

    def __init__(self, llm_client: BaseLLMClient, config: Optional[Configuration] = None):
        """
        Initialize coordinator.

        Args:
            llm_client: Generation capability used for every agent
            config: Heavy mode configuration (defaults if None)
        """
        self.llm_client = llm_client
        self.config = config or Configuration()
        self.state = RunState.PENDING
        self.current_order: Optional[int] = None

        self._outputs: Dict[str, AgentResponse] = {}
        self._responses: List[AgentResponse] = []
        self._limit: Optional[asyncio.Semaphore] = None

    @property
    def outputs(self) -> Dict[str, AgentResponse]:
        return dict(self._outputs)

    async def run(
        self,
        user_query: str,
        history: Sequence[ChatTurn],
        graph: AgentGraph
    ) -> RunResult:
        """
        Execute the graph for one user query.

        Args:
            user_query: Text the user submitted
            history: Conversation turns preceding this query
            graph: Agent snapshot (invalid edges are dropped before running)

        Returns:
            RunResult in COMPLETED state with the final text, or in FAILED
            state with the first generation error and no output

        Raises:
            RuntimeError: If this coordinator already ran
        """
        if self.state != RunState.PENDING:
            raise RuntimeError("ExecutionCoordinator instances serve a single run")

        # Bound to the loop that executes the run
        self._limit = asyncio.Semaphore(max(1, self.config.max_concurrent_agents))
        graph = graph.sanitized()
        ranks = schedule_ranks(graph)

        self.state = RunState.RUNNING
        run_start = time.time()
        executed: List[int] = []

        logger.info(f"=== Starting heavy mode run: {len(graph)} agents in {len(ranks)} ranks ===")

        for rank in ranks:
            self.current_order = rank.order
            error = await self._run_rank(user_query, history, graph, rank)
            executed.append(rank.order)

            if error is not None:
                self.state = RunState.FAILED
                duration = time.time() - run_start
                logger.error(f"Run failed at order {rank.order} after {duration:.2f}s: {error}")
                return RunResult(
                    state=RunState.FAILED,
                    error=error,
                    ranks_executed=executed,
                    duration_seconds=duration,
                )

        terminal_nodes = [node for rank in ranks for node in rank.nodes if node.is_terminal]
        final_text, responses = aggregate_results(self._outputs, terminal_nodes, self._responses)

        self.state = RunState.COMPLETED
        duration = time.time() - run_start
        logger.info(f"=== Heavy mode run completed in {duration:.2f}s ===")

        return RunResult(
            state=RunState.COMPLETED,
            final_text=final_text,
            agent_responses=responses,
            ranks_executed=executed,
            duration_seconds=duration,
        )

    async def _run_rank(
        self,
        user_query: str,
        history: Sequence[ChatTurn],
        graph: AgentGraph,
        rank: RankGroup
    ) -> Optional[GenerationError]:
        """
        Execute every agent of a rank concurrently and wait for all of them.

        Outputs are recorded only when the whole rank succeeded.

        Returns:
            The first failure in rank order, or None
        """
        logger.info(f"Executing {rank}")
        rank_start = time.time()

        # Inputs are composed before any call starts; outputs of this rank
        # are never visible to its own members.
        tasks = [
            self._execute_agent(node, compose_input(user_query, node, graph, self._outputs), history)
            for node in rank.nodes
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            for error in errors:
                logger.error(f"Order {rank.order}: {error}")
            first = errors[0]
            if isinstance(first, GenerationError):
                return first
            raise first

        for response in results:
            self._outputs[response.agent_id] = response
            self._responses.append(response)

        logger.info(f"Order {rank.order} completed in {time.time() - rank_start:.2f}s")
        return None

    async def _execute_agent(
        self,
        node: AgentNode,
        prompt: str,
        history: Sequence[ChatTurn]
    ) -> AgentResponse:
        """
        Run the generation call for one agent.

        Raises:
            GenerationError: If the call fails for any reason
        """
        async with self._limit:
            start_time = time.time()
            logger.info(f"[{node.name}] Starting ({node.model.value}, order {node.order})")

            try:
                text = await self.llm_client.generate(
                    prompt=prompt,
                    system_prompt=node.system_instruction,
                    history=select_history(history, node.context_messages),
                    model_tier=node.model,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                duration = time.time() - start_time
                logger.error(f"[{node.name}] Failed after {duration:.2f}s: {e}")
                raise GenerationError(node.id, node.name, e) from e

            logger.info(f"[{node.name}] Completed in {time.time() - start_time:.2f}s")
            return AgentResponse(agent_id=node.id, agent_name=node.name, text=text)


async def run_heavy_mode(
    user_query: str,
    history: Sequence[ChatTurn],
    graph: AgentGraph,
    llm_client: BaseLLMClient,
    config: Optional[Configuration] = None
) -> RunResult:
    """
    Run the agent graph for one query with a fresh coordinator.

    Args:
        user_query: Text the user submitted
        history: Conversation turns preceding this query
        graph: Agent snapshot
        llm_client: Generation capability
        config: Heavy mode configuration

    Returns:
        RunResult (see ExecutionCoordinator.run)
    """
    coordinator = ExecutionCoordinator(llm_client, config)
    return await coordinator.run(user_query, history, graph)
