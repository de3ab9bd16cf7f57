from __future__ import annotations


def build_corrective_guidance(error_code: str, action: str) -> dict[str, object]:
    code = (error_code or "unexpected_error").strip().lower()
    action_val = (action or "").strip().lower() or "action"

    guidance_map = {
        "catalog_unavailable": [
            "Check that the catalog endpoint or file is reachable.",
            "Use Retry to load the catalog again; the selection is kept empty until it loads.",
            "If repeated, point the catalog source at a local CSV or XLSX export.",
        ],
        "risk_service_error": [
            "Retry the analysis; the clause text is kept.",
            "Shorten or rephrase the clause if the scorer keeps rejecting it.",
            "Escalate with the error details if the service stays unavailable.",
        ],
        "transient_network_error": [
            "Retry after a short delay; the operation is retry-safe.",
            "Check network connectivity.",
            "Copy the logs if the error repeats.",
        ],
        "malformed_response": [
            "Retry once; the service answered with unreadable data.",
            "Check that the configured endpoint URL is correct.",
            "Escalate with the log lines if it repeats.",
        ],
        "validation_missing_fields": [
            "Fill all mandatory fields shown in the validation error.",
            "Re-run the action after the required fields are complete.",
            "Do not proceed until validation passes.",
        ],
        "surface_unavailable": [
            "Allow the print window to open (check Chrome is installed and not blocked).",
            "Retry the export; the document was left unchanged.",
            "Switch off headless printing in the configuration if the window never appears.",
        ],
        "render_target_missing": [
            "Open the preview before exporting.",
            "Retry the export once the document is visible.",
        ],
        "unexpected_error": [
            "Retry once from the same screen.",
            "If repeated, refresh the catalog and rebuild the selection.",
            "Escalate with error details and timestamp.",
        ],
    }

    steps = guidance_map.get(code, guidance_map["unexpected_error"])
    retry_safe = code in {
        "catalog_unavailable",
        "risk_service_error",
        "transient_network_error",
        "malformed_response",
        "validation_missing_fields",
        "surface_unavailable",
    }
    title = f"Corrective guidance for {action_val}"
    return {
        "title": title,
        "error_code": code,
        "retry_safe": retry_safe,
        "steps": steps,
    }
