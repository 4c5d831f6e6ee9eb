"""
CivicEye AI - REST API

FastAPI application for citizen report submission with AI photo analysis,
and the authority dashboard that reviews submitted reports.

Run with: uvicorn civiceye.api.main:app --reload
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, File, UploadFile, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from civiceye import __version__
from civiceye.core.config import settings
from civiceye.core.exceptions import (
    ActionInProgressError,
    CivicEyeError,
    ClassifierError,
    ImageTooLargeError,
    ImageValidationError,
    InvalidTransitionError,
    LocationError,
    LocationUnavailableError,
    NoReportSelectedError,
    ReportBuildError,
    ReportNotFoundError,
    ReviewActionError,
    StaleResultError,
    SubmissionNotFoundError,
    UnsupportedImageError,
)
from civiceye.core.logging import get_logger, setup_logging
from civiceye.crowdsource.location_resolver import DevicePosition
from civiceye.crowdsource.models import CivicReport, ReportStatus
from civiceye.crowdsource.export import to_authority_payload
from civiceye.crowdsource.review import ReviewAction
from civiceye.crowdsource.session import AppSession
from civiceye.crowdsource.submission import ReportSubmission

setup_logging()
logger = get_logger(__name__)

# FastAPI app
app = FastAPI(
    title="CivicEye AI",
    description="Citizen reporting of civic issues with AI photo analysis and an authority review dashboard",
    version=__version__,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    environment: str
    gemini_configured: bool


class LoginRequest(BaseModel):
    """Login credentials; the demo accepts any."""
    username: Optional[str] = None
    password: Optional[str] = None


class SessionResponse(BaseModel):
    """Current session state."""
    authenticated: bool
    username: Optional[str] = None


class LocationResponse(BaseModel):
    """Location attached to a draft or report."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    address: Optional[str] = None
    maps_url: Optional[str] = None


class ImageResponse(BaseModel):
    """Evidence photo metadata."""
    format: str
    mime_type: str
    width: int
    height: int
    size_bytes: int
    sha256: str


class AnalysisResponse(BaseModel):
    """Classifier output for a draft."""
    issue_type: str
    severity: str
    confidence: float = Field(ge=0.0, le=1.0)
    description: str
    recommended_action: str
    suggested_department: str
    sla_estimate: str
    has_pii: bool


class SubmissionResponse(BaseModel):
    """State of a report draft."""
    id: str
    stage: str
    location_status: str
    location_error: Optional[str] = None
    location: Optional[LocationResponse] = None
    image: Optional[ImageResponse] = None
    analysis: Optional[AnalysisResponse] = None
    can_submit: bool


class ReportResponse(BaseModel):
    """Submitted civic report."""
    id: str
    timestamp: str
    issue_type: str
    severity: str
    confidence: float
    description: str
    recommended_action: str
    suggested_department: str
    sla_estimate: str
    location: LocationResponse
    image: ImageResponse
    has_pii: bool
    status: str
    image_url: Optional[str] = Field(default=None, description="Evidence photo as a data URL")


class ReportListResponse(BaseModel):
    """List of civic reports, newest first."""
    count: int
    pending_count: int
    reports: list[ReportResponse]


class ReportStatsResponse(BaseModel):
    """Dashboard statistics."""
    total_reports: int
    critical_count: int
    pending_count: int
    average_confidence: float
    by_status: dict
    by_severity: dict
    by_issue_type: dict


# ============================================================================
# Helper Functions
# ============================================================================

# Most specific first; the first match wins
ERROR_STATUS_CODES = [
    (UnsupportedImageError, 415),
    (ImageTooLargeError, 413),
    (ImageValidationError, 400),
    (SubmissionNotFoundError, 404),
    (ReportNotFoundError, 404),
    (InvalidTransitionError, 409),
    (ActionInProgressError, 409),
    (StaleResultError, 409),
    (NoReportSelectedError, 409),
    (LocationUnavailableError, 422),
    (ReportBuildError, 422),
    (LocationError, 422),
    (ClassifierError, 502),
    (ReviewActionError, 503),
]


def http_error(error: CivicEyeError) -> HTTPException:
    """Map a domain error to an HTTP error response."""
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    else:
        logger.debug(f"{type(error).__name__} -> HTTP {status_code}: {error}")

    return HTTPException(status_code=status_code, detail=str(error))


# Global session, created on first use
_session: Optional[AppSession] = None


def get_session() -> AppSession:
    """Get the application session."""
    global _session
    if _session is None:
        _session = AppSession.from_settings(settings)
    return _session


def require_login(session: AppSession = Depends(get_session)) -> AppSession:
    """Session dependency for routes that need a logged-in user."""
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Login required")
    return session


def device_position(
    latitude: Optional[float],
    longitude: Optional[float],
    accuracy: Optional[float]
) -> Optional[DevicePosition]:
    """Device fix from form fields; None when the client shared none."""
    if latitude is None or longitude is None:
        return None
    return DevicePosition(latitude=latitude, longitude=longitude, accuracy=accuracy)


def get_submission(session: AppSession, submission_id: str) -> ReportSubmission:
    try:
        return session.get_submission(submission_id)
    except SubmissionNotFoundError as e:
        raise http_error(e)


def submission_response(submission: ReportSubmission) -> SubmissionResponse:
    return SubmissionResponse(**submission.to_dict())


def report_response(report: CivicReport, include_image: bool = False) -> ReportResponse:
    return ReportResponse(**report.to_dict(include_image=include_image))


# ============================================================================
# System Routes
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def root():
    """Welcome page."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>CivicEye AI</title>
        <style>
            body { font-family: Arial; max-width: 900px; margin: 50px auto; padding: 20px; background: #0f172a; color: #e2e8f0; }
            h1 { color: #38bdf8; }
            h3 { color: #a5b4fc; margin-top: 30px; }
            a { color: #38bdf8; }
            code { background: #1e293b; padding: 2px 8px; border-radius: 4px; color: #a5b4fc; }
            .endpoint { background: #1e293b; padding: 10px; margin: 5px 0; border-radius: 4px; border-left: 3px solid #38bdf8; }
            .tag { display: inline-block; background: #38bdf8; color: #0f172a; padding: 2px 8px; border-radius: 3px; font-size: 12px; margin-right: 5px; }
        </style>
    </head>
    <body>
        <h1>CivicEye AI</h1>
        <p>Report potholes, garbage dumps, broken streetlights and other civic issues with a photo.
        AI classifies the issue and authorities review it from the dashboard.</p>

        <h3>Documentation</h3>
        <ul>
            <li><a href="/docs">Swagger UI - Interactive API Documentation</a></li>
            <li><a href="/redoc">ReDoc - Alternative Documentation</a></li>
            <li><a href="/health">Health Check</a></li>
        </ul>

        <h3>Session</h3>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/session/login</code> - Start a session</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/session/logout</code> - End the session and clear reports</div>

        <h3>Citizen Reports</h3>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/submissions</code> - Open a report draft</div>
        <div class="endpoint"><span class="tag">PUT</span> <code>/api/v1/submissions/{id}/photo</code> - Upload the evidence photo</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/submissions/{id}/location</code> - Share or retry the device location</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/submissions/{id}/analyze</code> - Analyze the photo</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/submissions/{id}/submit</code> - Confirm and submit</div>

        <h3>Authority Dashboard</h3>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports</code> - List reports</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports/stats/summary</code> - Dashboard statistics</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports/{id}/export</code> - Authority JSON export</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/reports/{id}/actions/{action}</code> - Dispatch, resolve or reject</div>
    </body>
    </html>
    """


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.app_env,
        gemini_configured=settings.gemini_configured,
    )


# ============================================================================
# Session Routes
# ============================================================================

@app.post("/api/v1/session/login", response_model=SessionResponse, tags=["Session"])
async def login(request: LoginRequest, session: AppSession = Depends(get_session)):
    """Start a session. Any credentials are accepted."""
    session.login(request.username)
    return SessionResponse(authenticated=True, username=session.username)


@app.post("/api/v1/session/logout", response_model=SessionResponse, tags=["Session"])
async def logout(session: AppSession = Depends(require_login)):
    """End the session. All reports and drafts are discarded."""
    session.logout()
    return SessionResponse(authenticated=False)


# ============================================================================
# Submission Routes
# ============================================================================

@app.post("/api/v1/submissions", response_model=SubmissionResponse, tags=["Submissions"])
async def open_submission(
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    accuracy: Optional[float] = Form(None, ge=0),
    session: AppSession = Depends(require_login),
):
    """
    Open a report draft.

    Pass the browser's geolocation fix if the user shared it; without one
    the draft's location goes to the error state until a photo with a
    geotag is uploaded or the location is retried.
    """
    submission = await session.open_submission(device_position(latitude, longitude, accuracy))
    return submission_response(submission)


@app.get("/api/v1/submissions/{submission_id}", response_model=SubmissionResponse, tags=["Submissions"])
async def get_submission_state(submission_id: str, session: AppSession = Depends(require_login)):
    """Get the state of a report draft."""
    return submission_response(get_submission(session, submission_id))


@app.delete("/api/v1/submissions/{submission_id}", tags=["Submissions"])
async def close_submission(submission_id: str, session: AppSession = Depends(require_login)):
    """Discard a report draft."""
    get_submission(session, submission_id)
    session.close_submission(submission_id)
    return {"status": "closed", "id": submission_id}


@app.put("/api/v1/submissions/{submission_id}/photo", response_model=SubmissionResponse, tags=["Submissions"])
async def upload_photo(
    submission_id: str,
    photo: UploadFile = File(...),
    session: AppSession = Depends(require_login),
):
    """
    Upload the evidence photo (JPEG or PNG).

    A geotagged photo sets the draft's location; otherwise the device
    location is used.
    """
    submission = get_submission(session, submission_id)
    data = await photo.read()

    try:
        await submission.select_image(data, photo.content_type)
    except CivicEyeError as e:
        raise http_error(e)

    return submission_response(submission)


@app.delete("/api/v1/submissions/{submission_id}/photo", response_model=SubmissionResponse, tags=["Submissions"])
async def remove_photo(submission_id: str, session: AppSession = Depends(require_login)):
    """Remove the photo and its analysis."""
    submission = get_submission(session, submission_id)
    await submission.remove_image()
    return submission_response(submission)


@app.post("/api/v1/submissions/{submission_id}/location", response_model=SubmissionResponse, tags=["Submissions"])
async def update_location(
    submission_id: str,
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    accuracy: Optional[float] = Form(None, ge=0),
    session: AppSession = Depends(require_login),
):
    """Share a fresh device fix, or retry the last one after an error."""
    position = device_position(latitude, longitude, accuracy)

    try:
        if position is not None:
            submission = await session.update_device_position(submission_id, position)
        else:
            submission = session.get_submission(submission_id)
            await submission.retry_location()
    except CivicEyeError as e:
        raise http_error(e)

    return submission_response(submission)


@app.post("/api/v1/submissions/{submission_id}/analyze", response_model=SubmissionResponse, tags=["Submissions"])
async def analyze_photo(submission_id: str, session: AppSession = Depends(require_login)):
    """Classify the photo and look up the address."""
    submission = get_submission(session, submission_id)

    try:
        await submission.analyze()
    except CivicEyeError as e:
        raise http_error(e)

    return submission_response(submission)


@app.delete("/api/v1/submissions/{submission_id}/analysis", response_model=SubmissionResponse, tags=["Submissions"])
async def discard_analysis(submission_id: str, session: AppSession = Depends(require_login)):
    """Throw away the analysis and keep the photo."""
    submission = get_submission(session, submission_id)
    submission.discard_analysis()
    return submission_response(submission)


@app.post("/api/v1/submissions/{submission_id}/submit", response_model=ReportResponse, tags=["Submissions"])
async def submit_report(submission_id: str, session: AppSession = Depends(require_login)):
    """Confirm the analyzed draft and submit it as a report."""
    submission = get_submission(session, submission_id)

    try:
        report = submission.submit()
    except CivicEyeError as e:
        raise http_error(e)

    return report_response(report)


# ============================================================================
# Report Routes
# ============================================================================

@app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
async def list_reports(
    status: Optional[ReportStatus] = Query(None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=200),
    include_images: bool = Query(default=False, description="Embed evidence photos as data URLs"),
    session: AppSession = Depends(require_login),
):
    """List reports, newest first."""
    reports = session.store.list(status)[:limit]

    return ReportListResponse(
        count=len(reports),
        pending_count=len(session.store.list(ReportStatus.PENDING)),
        reports=[report_response(r, include_images) for r in reports],
    )


@app.get("/api/v1/reports/stats/summary", response_model=ReportStatsResponse, tags=["Reports"])
async def get_report_stats(session: AppSession = Depends(require_login)):
    """Get dashboard statistics for all reports."""
    return ReportStatsResponse(**session.store.get_statistics())


@app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
async def get_report(
    report_id: str,
    include_image: bool = Query(default=True, description="Embed the evidence photo as a data URL"),
    session: AppSession = Depends(require_login),
):
    """Get a specific report by ID."""
    report = session.store.get(report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    return report_response(report, include_image)


@app.get("/api/v1/reports/{report_id}/export", tags=["Reports"])
async def export_report(report_id: str, session: AppSession = Depends(require_login)):
    """Export a report in the authority JSON format."""
    report = session.store.get(report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    return to_authority_payload(report, session.settings.evidence_base_url)


@app.post("/api/v1/reports/{report_id}/actions/{action}", response_model=ReportResponse, tags=["Reports"])
async def review_report(report_id: str, action: str, session: AppSession = Depends(require_login)):
    """
    Apply an operator action to a report.

    Actions: dispatch (pending -> dispatched), resolve (dispatched -> resolved),
    reject (pending -> reviewed).
    """
    try:
        action_enum = ReviewAction(action.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid action: {action}")

    try:
        session.review.select(report_id)
        report = await session.review.perform(action_enum)
    except CivicEyeError as e:
        raise http_error(e)

    return report_response(report)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
