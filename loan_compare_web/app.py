import logging
import os

import click
from flask import Flask, jsonify, request

from loan_compare.data_models import CalculationResult
from loan_compare.engine import amortize
from loan_compare.exceptions import InvalidLoanInput
from loan_compare.formatter import serialize_metrics, serialize_rows, serialize_schedule
from loan_compare.main import build_config_from_options
from loan_compare.metrics import compute_loan_metrics
from loan_compare.scenarios import SCENARIOS, run_scenario
from loan_compare.utils import parse_amount

app = Flask(__name__)
app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO").upper()
app.config["MAX_SCHEDULE_ROWS"] = int(os.environ.get("MAX_SCHEDULE_ROWS", "120"))

logging.basicConfig(
    level=app.config["LOG_LEVEL"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _args_to_config(args, current_rate_key="current_rate", new_rate_key="new_rate"):
    return build_config_from_options(
        args.get("principal", "").strip(),
        args.get(current_rate_key),
        args.get(new_rate_key),
        args.get("tenure"),
        args.get("tenure_unit", "months").lower() == "years",
        args.get("extra", "").strip() or None,
        args.get("frequency", "monthly"),
    )


def _result_response(result: CalculationResult, key: str, payload, **extra):
    body = {"status": "ok" if result.ok else result.failure.value, key: payload}
    if not result.ok:
        body["error"] = result.message
    body.update(extra)
    return jsonify(body)


def _truncate_for_view(schedule: list, show_full_schedule: bool):
    if show_full_schedule:
        return schedule, 0
    limit = app.config["MAX_SCHEDULE_ROWS"]
    preview = schedule[:limit]
    return preview, len(schedule) - len(preview)


@app.errorhandler(click.BadParameter)
def bad_parameter(exc):
    logger.info("Rejected request %s: %s", request.path, exc.format_message())
    return jsonify({"status": "invalid_input", "error": exc.format_message()}), 400


@app.get("/")
def index():
    scenarios = {
        name: {"title": scenario.title, "fields": list(scenario.fields)}
        for name, scenario in SCENARIOS.items()
    }
    return jsonify(
        {
            "endpoints": ["/api/metrics", "/api/schedule", "/api/comparison/<scenario>"],
            "scenarios": scenarios,
        }
    )


@app.get("/api/metrics")
def metrics():
    config = _args_to_config(request.args)
    result = compute_loan_metrics(
        config.principal, config.current_rate, config.new_rate, config.tenure_months, config.extra_monthly
    )
    return _result_response(result, "metrics", serialize_metrics(result.value))


@app.get("/api/schedule")
def schedule():
    config = _args_to_config(request.args, "rate", "rate")
    fixed_emi = request.args.get("fixed_emi", "").strip()
    try:
        installment = parse_amount(fixed_emi) if fixed_emi else None
    except InvalidLoanInput as exc:
        raise click.BadParameter(str(exc), param_hint="fixed_emi")
    terms = config.current_terms()
    result = amortize(
        terms.principal, terms.annual_rate, terms.term_months, terms.extra_monthly_payment, installment
    )
    entries, truncated = _truncate_for_view(result.value, request.args.get("full") == "1")
    return _result_response(
        result, "schedule", serialize_schedule(entries), months=len(result.value), truncated=truncated
    )


@app.get("/api/comparison/<scenario>")
def comparison(scenario):
    if scenario not in SCENARIOS:
        return jsonify({"status": "unknown_scenario", "error": f"Unknown scenario: {scenario}"}), 404
    config = _args_to_config(request.args)
    result = run_scenario(scenario, config)
    rows = serialize_rows(result.value, SCENARIOS[scenario].fields)
    return _result_response(result, "rows", rows, scenario=scenario)


if __name__ == "__main__":
    print("Starting Loan Comparison web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
