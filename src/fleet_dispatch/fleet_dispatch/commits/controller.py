from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from flask import Flask, current_app, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..core.exceptions import (
    ConflictError,
    DomainError,
    GenerationError,
    LockedError,
    NotFoundError,
    ValidationError,
)
from ..container import Container
from ..pay_records.model import PayRecord
from ..payroll.model import PayLine, PayLineIssue
from .model import CommitPreview, CommitSummary, DayCommitStatus, EmployeeFailure, UncommitSummary

logger = logging.getLogger(__name__)


def _money(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _issue_dict(issue: PayLineIssue) -> dict:
    return {
        "kind": issue.kind.value,
        "message": issue.message,
        "duty_instance_id": issue.duty_instance_id,
        "pay_type_code": issue.pay_type_code,
    }


def _failure_dict(f: EmployeeFailure) -> dict:
    return {"employee_id": f.employee_id, "issues": [_issue_dict(i) for i in f.issues]}


def _status_dict(s: DayCommitStatus) -> dict:
    return {
        "date": s.work_date.isoformat(),
        "state": s.state.value,
        "is_fully_committed": s.state.value == "committed",
        "committed_employee_ids": s.committed_employee_ids,
        "pending_employee_ids": s.pending_employee_ids,
    }


def _line_dict(line: PayLine) -> dict:
    return {
        "duty_instance_id": line.duty_instance_id,
        "pay_type_code": line.pay_type_code,
        "hours": str(line.hours),
        "rate": _money(line.rate),
        "amount": _money(line.amount),
    }


def _record_dict(r: PayRecord) -> dict:
    return {
        "id": r.pay_record_id,
        "employee_id": r.employee_id,
        "work_date": r.work_date.isoformat(),
        "duty_instance_id": r.duty_instance_id,
        "pay_type_code": r.pay_type_code,
        "hours": str(r.hours),
        "rate": _money(r.rate),
        "amount": _money(r.amount),
        "status": r.status.value,
        "source": r.source.value,
        "notes": r.notes,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


def _summary_dict(s: CommitSummary) -> dict:
    return {
        "date": s.work_date.isoformat(),
        "scope": s.scope.value,
        "employee_id": s.employee_id,
        "created": s.created,
        "updated": s.updated,
        "voided": s.voided,
        "failures": [_failure_dict(f) for f in s.failures],
        "status": _status_dict(s.status),
    }


def _uncommit_dict(s: UncommitSummary) -> dict:
    return {
        "date": s.work_date.isoformat(),
        "scope": s.scope.value,
        "employee_id": s.employee_id,
        "voided": s.voided,
        "status": _status_dict(s.status),
    }


def _preview_dict(p: CommitPreview) -> dict:
    return {
        "date": p.work_date.isoformat(),
        "scope": p.scope.value,
        "employee_id": p.employee_id,
        "created": p.created,
        "updated": p.updated,
        "voided": p.voided,
        "lines": {emp: [_line_dict(l) for l in lines] for emp, lines in p.lines.items()},
        "failures": [_failure_dict(f) for f in p.failures],
    }


def error_response(exc: DomainError):
    """Map domain errors to HTTP status codes."""

    body: dict[str, Any] = {"success": False, "code": exc.code, "message": str(exc)}
    if isinstance(exc, GenerationError):
        body["employee_id"] = exc.employee_id
        body["issues"] = [_issue_dict(i) for i in exc.issues]
        return jsonify(body), 422
    if isinstance(exc, ValidationError):
        return jsonify(body), 400
    if isinstance(exc, NotFoundError):
        return jsonify(body), 404
    if isinstance(exc, LockedError):
        body["pay_record_ids"] = exc.pay_record_ids
        return jsonify(body), 409
    if isinstance(exc, ConflictError):
        return jsonify(body), 409
    return jsonify(body), 400


def register(app: Flask, container: Container) -> None:
    def _tenant_id() -> str:
        return request.headers.get("X-Tenant-ID") or current_app.config["DEFAULT_TENANT_ID"]

    def _commit_args() -> dict:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Invalid request body")
        return {
            "work_date": parse_iso_date(body.get("date") or ""),
            "scope": body.get("scope"),
            "employee_id": body.get("employee_id") or None,
        }

    @app.route("/dispatch/commit", methods=["POST"], endpoint="dispatch_commit")
    def dispatch_commit():
        try:
            args = _commit_args()
            notes = (request.get_json(silent=True) or {}).get("notes")
            summary = container.commit_engine.commit_day(tenant_id=_tenant_id(), notes=notes, **args)
            return jsonify({"success": True, "data": _summary_dict(summary)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Commit failed")
            return jsonify({"success": False, "message": str(e)}), 500

    @app.route("/dispatch/commit/preview", methods=["POST"], endpoint="dispatch_commit_preview")
    def dispatch_commit_preview():
        try:
            preview = container.commit_engine.preview_commit(tenant_id=_tenant_id(), **_commit_args())
            return jsonify({"success": True, "data": _preview_dict(preview)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Commit preview failed")
            return jsonify({"success": False, "message": str(e)}), 500

    @app.route("/dispatch/uncommit", methods=["POST"], endpoint="dispatch_uncommit")
    def dispatch_uncommit():
        try:
            args = _commit_args()
            notes = (request.get_json(silent=True) or {}).get("notes")
            summary = container.commit_engine.uncommit_day(tenant_id=_tenant_id(), notes=notes, **args)
            return jsonify({"success": True, "data": _uncommit_dict(summary)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Uncommit failed")
            return jsonify({"success": False, "message": str(e)}), 500

    @app.route("/dispatch/commit-status/<date_s>", methods=["GET"], endpoint="dispatch_commit_status")
    def dispatch_commit_status(date_s: str):
        try:
            status = container.commit_engine.get_commit_status(
                tenant_id=_tenant_id(), work_date=parse_iso_date(date_s)
            )
            return jsonify({"success": True, "data": _status_dict(status)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Commit status failed")
            return jsonify({"success": False, "message": str(e)}), 500

    @app.route("/dispatch/pay-records/<date_s>", methods=["GET"], endpoint="dispatch_pay_records")
    def dispatch_pay_records(date_s: str):
        try:
            report = container.pay_record_service.list_for_date(
                tenant_id=_tenant_id(),
                work_date=parse_iso_date(date_s),
                include_voided=request.args.get("include_voided") in {"1", "true", "yes"},
            )
            return jsonify(
                {
                    "success": True,
                    "data": {
                        "records": [_record_dict(r) for r in report.records],
                        "totals": {
                            "total_hours": str(report.total_hours),
                            "total_amount": _money(report.total_amount),
                            "by_pay_type": {
                                code: {"hours": str(t.hours), "amount": _money(t.amount)}
                                for code, t in report.by_pay_type.items()
                            },
                        },
                    },
                }
            ), 200
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Listing pay records failed")
            return jsonify({"success": False, "message": str(e)}), 500
