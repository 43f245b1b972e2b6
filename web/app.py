"""Flask web application for the MecSentinel dashboard."""

from datetime import date
from functools import wraps
from pathlib import Path

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from mecsentinel import (
    Category,
    HistoryEntry,
    MaintenanceRule,
    Status,
    VehicleStore,
    build_alerts,
    select_most_urgent,
)
from mecsentinel.advisor import MechanicAdvisor
from mecsentinel.config import Settings
from mecsentinel.intake import (
    ANSWER_KEYS,
    NOT_DONE,
    IntakeError,
    apply_monthly_distance,
    build_vehicle_from_answers,
    apply_odometer_reading,
    parse_date,
    parse_interval,
    parse_km,
)
from mecsentinel.log import setup_logging
from mecsentinel.store import is_safe_id

settings = Settings.load()
setup_logging()

app = Flask(__name__)
app.secret_key = settings.secret_key
app.config["DATA_DIR"] = settings.data_dir
app.config["ADVISOR"] = None

SIGN_IN_EVENTS = ("SIGNED_IN", "TOKEN_REFRESHED")


def get_store() -> VehicleStore:
    return VehicleStore(app.config["DATA_DIR"])


def get_advisor() -> MechanicAdvisor:
    """Advisor from app config (tests inject one), else a default one."""
    return app.config["ADVISOR"] or MechanicAdvisor(settings)


def today() -> date:
    return date.today()


def format_km(km):
    """Format a distance with comma separator."""
    if km is None:
        return "—"
    return f"{km:,.0f}"


def status_color(status: Status) -> str:
    """Get Tailwind color classes for status."""
    colors = {
        Status.CRITICAL: "bg-red-100 text-red-800 border-red-200",
        Status.ATTENTION: "bg-orange-100 text-orange-800 border-orange-200",
        Status.NORMAL: "bg-green-100 text-green-800 border-green-200",
    }
    return colors.get(status, "bg-gray-100 text-gray-800")


def status_headline(status: Status) -> str:
    headlines = {
        Status.CRITICAL: "URGENT: attention needed now!",
        Status.ATTENTION: "ATTENTION: service coming up",
        Status.NORMAL: "All good for now",
    }
    return headlines[status]


# Register template filters
app.jinja_env.filters["format_km"] = format_km
app.jinja_env.filters["status_color"] = status_color
app.jinja_env.filters["status_headline"] = status_headline


def signed_in(view):
    """Reject API and form requests without a signed-in user."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not session.get("user_id"):
            return jsonify({"ok": False, "error": "Not signed in"}), 401
        return view(*args, **kwargs)
    return wrapper


def current_vehicle():
    """Latest vehicle of the signed-in user, or None."""
    return get_store().get_latest_vehicle(session["user_id"])


def no_vehicle():
    return jsonify({"ok": False, "error": "No vehicle registered"}), 404


@app.route("/auth/set", methods=["POST"])
def auth_set():
    """Sync the auth provider's session event into the Flask session."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or "event" not in payload:
        return jsonify({"ok": False, "error": "Invalid payload"}), 400

    event = payload["event"]
    auth_session = payload.get("session")

    if event in SIGN_IN_EVENTS and auth_session:
        user = auth_session.get("user") if isinstance(auth_session, dict) else None
        user_id = user.get("id") if isinstance(user, dict) else None
        if not is_safe_id(user_id):
            return jsonify({"ok": False, "error": "Invalid payload"}), 400
        session["user_id"] = user_id
        app.logger.info("User %s signed in", user_id)

    if event == "SIGNED_OUT":
        session.pop("user_id", None)

    return jsonify({"ok": True})


@app.route("/")
def index():
    """Dashboard for the signed-in user's latest vehicle."""
    user_id = session.get("user_id")
    if not user_id:
        return render_template("welcome.html", signed_in=False)

    vehicle = get_store().get_latest_vehicle(user_id)
    if vehicle is None:
        return render_template("welcome.html", signed_in=True)

    items = vehicle.maintenance_items(today())
    return render_template(
        "dashboard.html",
        vehicle=vehicle,
        items=items,
        most_urgent=select_most_urgent(items),
        alerts=[a for a in build_alerts(items) if a.severity != "info"],
        Status=Status,
    )


def _answers_from_form(form) -> dict:
    """Quiz answers from the flat welcome form (oil_date, oil_km, ...)."""
    answers = {
        key: form.get(key, "")
        for key in ("vehicleType", "vehicleModel", "vehicleYear", "currentKm", "usageType")
    }
    answers["isZeroKm"] = form.get("isZeroKm", "no")
    for category, answer_key in ANSWER_KEYS.items():
        service_date = form.get(f"{category.value}_date", "")
        km = form.get(f"{category.value}_km", "")
        if service_date or km:
            answers[answer_key] = {"type": "known", "date": service_date, "km": km}
        else:
            answers[answer_key] = {"type": NOT_DONE}
    return answers


@app.route("/vehicle", methods=["POST"])
@signed_in
def create_vehicle():
    """Register a vehicle from the intake quiz (JSON) or the welcome form."""
    payload = request.get_json(silent=True)
    answers = payload if isinstance(payload, dict) else _answers_from_form(request.form)

    try:
        vehicle = build_vehicle_from_answers(answers, user_id=session["user_id"])
    except IntakeError as e:
        if request.is_json:
            return jsonify({"ok": False, "error": str(e)}), 400
        flash(str(e), "error")
        return redirect(url_for("index"))

    get_store().create_vehicle(vehicle)
    app.logger.info("Registered vehicle %s for user %s", vehicle.vehicle_id, vehicle.user_id)

    if request.is_json:
        return jsonify({"ok": True, "id": vehicle.vehicle_id}), 201
    flash(f"Registered {vehicle.name}", "success")
    return redirect(url_for("index"))


@app.route("/vehicle/km", methods=["POST"])
@signed_in
def update_km():
    """Handle update odometer form submission."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    mode = request.form.get("mode", "odometer")
    try:
        if mode == "monthly":
            new_km = apply_monthly_distance(vehicle.current_km, request.form.get("km"))
        else:
            new_km = apply_odometer_reading(vehicle.current_km, request.form.get("km"))
    except IntakeError as e:
        flash(str(e), "error")
        return redirect(url_for("index"))

    get_store().update_current_km(vehicle.user_id, vehicle.vehicle_id, new_km)
    flash(f"Updated odometer to {new_km:,} km", "success")
    return redirect(url_for("index"))


@app.route("/vehicle/history", methods=["POST"])
@signed_in
def log_service():
    """Handle log service form submission."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    try:
        category = Category(request.form.get("category", ""))
    except ValueError:
        flash("Please select a maintenance item", "error")
        return redirect(url_for("index"))

    try:
        service_date = parse_date(request.form.get("date")) or today().isoformat()
    except IntakeError as e:
        flash(str(e), "error")
        return redirect(url_for("index"))

    raw_km = request.form.get("km") or None
    km = parse_km(raw_km)
    if raw_km is not None and km is None:
        flash(f"Invalid odometer reading '{raw_km}'", "error")
        return redirect(url_for("index"))

    entry = HistoryEntry(
        category,
        date=service_date,
        km=km,
        notes=request.form.get("notes") or None,
    )
    get_store().insert_maintenance_history(vehicle.user_id, vehicle.vehicle_id, [entry])
    flash(f"Logged service: {category.display_name}", "success")
    return redirect(url_for("index"))


@app.route("/api/maintenance")
@signed_in
def api_maintenance():
    """Maintenance items and the most urgent one as JSON."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    items = vehicle.maintenance_items(today())
    urgent = select_most_urgent(items)
    return jsonify(
        {
            "items": [i.to_dict() for i in items],
            "mostUrgent": urgent.category.value if urgent else None,
        }
    )


@app.route("/api/health")
@signed_in
def api_health():
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    items = vehicle.maintenance_items(today())
    report = get_advisor().analyze_health(vehicle, items)
    return jsonify(report.to_dict())


def _rule_to_json(rule: MaintenanceRule) -> dict:
    return {
        "category": rule.category.value,
        "name": rule.name,
        "intervalMonths": rule.interval_months,
        "intervalKm": rule.interval_km,
        "description": rule.description,
        "aiSuggested": rule.ai_suggested,
        "userAdjusted": rule.user_adjusted,
    }


@app.route("/api/rules", methods=["GET"])
@signed_in
def api_rules():
    """Saved rules, or fresh suggestions when none are saved (or ?suggest=true)."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    explanation = None
    rules = vehicle.rules
    if not rules or request.args.get("suggest", "").lower() == "true":
        rules, explanation = get_advisor().suggest_rules(vehicle)
        get_store().save_rules(vehicle.user_id, vehicle.vehicle_id, rules)

    return jsonify(
        {"rules": [_rule_to_json(r) for r in rules], "explanation": explanation}
    )


@app.route("/api/rules", methods=["POST"])
@signed_in
def api_adjust_rule():
    """Adjust the interval of one category."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    payload = request.get_json(silent=True) or {}
    try:
        category = Category(payload.get("category"))
        months, km = parse_interval(payload.get("intervalMonths"), payload.get("intervalKm"))
    except ValueError:
        return jsonify({"ok": False, "error": "Invalid rule"}), 400

    rules = list(vehicle.rules)
    rule = vehicle.get_rule(category)
    if rule is None:
        rule = MaintenanceRule(category, months, km, user_adjusted=True)
        rules.append(rule)
    else:
        rule.adjust(months, km)

    get_store().save_rules(vehicle.user_id, vehicle.vehicle_id, rules)
    return jsonify({"ok": True, "rule": _rule_to_json(rule)})


@app.route("/api/chat", methods=["POST"])
@signed_in
def api_chat():
    """Reply of the mechanic assistant to the conversation so far."""
    vehicle = current_vehicle()
    if vehicle is None:
        return no_vehicle()

    payload = request.get_json(silent=True) or {}
    messages = [
        {"role": m["role"], "content": str(m["content"])}
        for m in payload.get("messages") or []
        if isinstance(m, dict) and m.get("role") in ("user", "assistant") and "content" in m
    ]
    if not messages:
        return jsonify({"ok": False, "error": "No messages"}), 400

    return jsonify({"reply": get_advisor().chat(messages, vehicle)})


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
