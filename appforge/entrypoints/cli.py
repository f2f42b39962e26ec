from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from appforge.evaluation.metrics import collect_outcomes
from appforge.schemas.messages import Result
from appforge.telemetry.logging import setup_logging
from appforge.utils.chat_models import build_llm_client
from appforge.utils.settings import load_config
from appforge.utils.setup import load_secrets
from appforge.workflows.summary import build_request_task, summarize_result
from appforge.workflows.system import create_agent_system


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan and build an application request with the agent team.")
    parser.add_argument("request", help="What to build, in plain language.")
    parser.add_argument("--env", default="base", help="Config environment (base, dev, prod, ...).")
    parser.add_argument("--config-dir", default="configs", help="Directory holding <env>.yaml files.")
    parser.add_argument("--context", default="{}", help="Extra context for the planner, as a JSON object.")
    parser.add_argument("--output", help="Write the full result as JSON to this path.")
    parser.add_argument("--secrets", default="config.yml", help="Secrets file with API keys.")
    return parser.parse_args(argv)


def render(result: Result, summary: str) -> str:
    lines = [summary, ""]
    for outcome in collect_outcomes(result):
        status = "ok" if outcome.success else f"failed: {outcome.error}"
        lines.append(f"[{outcome.task_id}] {status}")
    if result.artifacts is not None:
        for artifact in result.artifacts.files:
            lines.append(f"file   {artifact.path} ({artifact.type})")
        for schema in result.artifacts.schemas:
            lines.append(f"schema {schema.name}")
        for doc in result.artifacts.docs:
            lines.append(f"doc    {doc.title}")
    if not result.success:
        lines.append(f"error: {result.error}")
    return "\n".join(lines)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        context = json.loads(args.context)
    except ValueError as exc:
        print(f"--context is not valid JSON: {exc}", file=sys.stderr)
        return 2
    if not isinstance(context, dict):
        print("--context must be a JSON object", file=sys.stderr)
        return 2

    config = load_config(args.env, config_dir=args.config_dir)
    setup_logging(config.logging.level, config.logging.log_dir)
    load_secrets(args.secrets)

    llm_client = build_llm_client(config.llm)
    coordinator = create_agent_system(llm_client, config)
    result = coordinator.execute(build_request_task(args.request, context))
    summary = summarize_result(result, llm_client, timeout=config.llm.timeout_s)

    print(render(result, summary))
    if args.output:
        Path(args.output).write_text(json.dumps(result.to_dict(), indent=2, default=str), encoding="utf-8")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
