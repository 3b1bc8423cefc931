"""FastAPI server for the clinic booking service.

Features:
- Slot availability per clinic/date/doctor
- Conflict-checked appointment booking and lifecycle changes
- Clinic and doctor directory with weekly schedules
- Global exception handling with a {success, error} envelope
- Structured logging with request IDs
- Background task for daily appointment reminders

Usage:
    uvicorn clinic_booking.api_server:app --port 8000
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_booking import config
from clinic_booking.actors import Actor
from clinic_booking.api.dependencies import (
    get_actor, get_admission, get_directory, get_ledger, get_resolver, require_admin,
)
from clinic_booking.api.models import (
    AppointmentOut, AppointmentUpdateRequest, BookingRequest, CancelRequest,
    ClinicCreateRequest, ClinicOut, CompleteRequest, DoctorCreateRequest, DoctorOut,
    ErrorResponse, ScheduleRequest,
)
from clinic_booking.availability import AvailabilityResolver
from clinic_booking.booking import BookingAdmission
from clinic_booking.database import close_engines, init_database
from clinic_booking.directory import ClinicDirectory
from clinic_booking.errors import BookingError, ConflictError, PermissionDeniedError
from clinic_booking.logging_config import RequestIDMiddleware, get_logger, setup_structured_logging
from clinic_booking.reminders import AppointmentReminderJob, run_reminders_daily

logger = get_logger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    setup_structured_logging(config.LOG_LEVEL)
    logger.info("server_starting")

    try:
        init_database(config.DATABASE_URL)
        logger.info("database_initialized")
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        raise

    reminder_task = None
    if config.REMINDERS_ENABLED:
        job = AppointmentReminderJob(get_ledger(), get_directory())
        reminder_task = asyncio.create_task(run_reminders_daily(job, config.REMINDER_HOUR))
        logger.info("reminder_task_started", hour=config.REMINDER_HOUR)

    yield

    if reminder_task is not None:
        reminder_task.cancel()
        try:
            await reminder_task
        except asyncio.CancelledError:
            logger.info("reminder_task_cancelled")

    close_engines()
    logger.info("server_shutting_down")


app = FastAPI(
    title="Clinic Booking API",
    description="Doctor availability and conflict-checked appointment booking",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIDMiddleware)


def _error(status_code: int, message: str, code: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            code=code or ERROR_CODES.get(status_code)
        ).model_dump()
    )


# Global exception handlers
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Turn domain errors into {success: false, error}."""
    logger.info(
        "request_rejected",
        error_type=type(exc).__name__,
        error=exc.message,
        method=request.method,
        path=request.url.path,
    )
    code = "CONFLICT" if isinstance(exc, ConflictError) else None
    return _error(exc.status_code, exc.message, code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors with the same envelope."""
    logger.warning("validation_error", errors=str(exc.errors()), path=request.url.path)
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _error(
        status.HTTP_400_BAD_REQUEST,
        f"{location}: {message}" if location else message,
        "VALIDATION_ERROR"
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected exceptions."""
    logger.error(
        "unexpected_error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_ERROR"
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": "clinic-booking-api",
        "version": "1.0.0"
    }


router = APIRouter(prefix="/api")


# ----------------------------------------------------------------------
# Clinics and doctors
# ----------------------------------------------------------------------

@router.get("/clinics", tags=["Clinics"])
def list_clinics(
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    directory: ClinicDirectory = Depends(get_directory)
):
    """List active clinics."""
    clinics, total = directory.list_clinics(offset=(page - 1) * limit, limit=limit)
    total_pages = -(-total // limit)
    return {
        "success": True,
        "data": [ClinicOut.model_validate(c).to_json() for c in clinics],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasMore": page < total_pages,
        }
    }


@router.post("/clinics", tags=["Clinics"], status_code=status.HTTP_201_CREATED)
def create_clinic(
    request: ClinicCreateRequest,
    actor: Actor = Depends(require_admin),
    directory: ClinicDirectory = Depends(get_directory)
):
    """Create a clinic (clinic admin)."""
    clinic = directory.create_clinic(**request.model_dump(exclude_none=True))
    return {
        "success": True,
        "data": ClinicOut.model_validate(clinic).to_json(),
        "message": "Clinic created"
    }


@router.get("/clinics/{clinic_id}", tags=["Clinics"])
def get_clinic(clinic_id: str, directory: ClinicDirectory = Depends(get_directory)):
    """Clinic details with its doctors."""
    clinic = directory.get_clinic(clinic_id)
    doctors = directory.list_doctors(clinic.id, available_only=False)
    data = ClinicOut.model_validate(clinic).to_json()
    data["doctors"] = [DoctorOut.from_doctor(d).to_json() for d in doctors]
    return {"success": True, "data": data}


@router.get("/clinics/{clinic_id}/available-slots", tags=["Availability"])
def get_available_slots(
    clinic_id: str,
    date: Optional[str] = Query(None, description="Day to check (YYYY-MM-DD)"),
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    resolver: AvailabilityResolver = Depends(get_resolver)
):
    """
    Free and taken slots of a clinic's doctors on a date.

    Returns:
        {"success": true, "data": {"date", "clinic", "availableSlots"}}

    Raises:
        400: Missing or malformed date
        404: Unknown clinic
    """
    return {
        "success": True,
        "data": resolver.get_available_slots(clinic_id, date, doctor_id=doctor_id)
    }


@router.post("/clinics/{clinic_id}/doctors", tags=["Doctors"], status_code=status.HTTP_201_CREATED)
def create_doctor(
    clinic_id: str,
    request: DoctorCreateRequest,
    actor: Actor = Depends(require_admin),
    directory: ClinicDirectory = Depends(get_directory)
):
    """Register a doctor at a clinic (clinic admin)."""
    fields = request.model_dump(exclude={"schedule", "full_name"}, exclude_none=True)
    schedule = request.schedule.to_schedule() if request.schedule else None
    doctor = directory.create_doctor(
        clinic_id, request.full_name, schedule=schedule, **fields
    )
    return {
        "success": True,
        "data": DoctorOut.from_doctor(doctor).to_json(),
        "message": "Doctor created"
    }


@router.get("/doctors/{doctor_id}", tags=["Doctors"])
def get_doctor(doctor_id: str, directory: ClinicDirectory = Depends(get_directory)):
    """Doctor details with the effective weekly schedule."""
    doctor = directory.get_doctor(doctor_id)
    return {"success": True, "data": DoctorOut.from_doctor(doctor).to_json()}


@router.put("/doctors/{doctor_id}/schedule", tags=["Doctors"])
def update_doctor_schedule(
    doctor_id: str,
    request: ScheduleRequest,
    actor: Actor = Depends(get_actor),
    directory: ClinicDirectory = Depends(get_directory)
):
    """
    Replace a doctor's weekly schedule.

    Allowed for the doctor themself and for clinic admins.
    """
    doctor = directory.get_doctor(doctor_id)
    if not (actor.is_admin or (actor.is_doctor and doctor.user_id == actor.user_id)):
        raise PermissionDeniedError("You cannot change this schedule")

    doctor = directory.update_schedule(doctor_id, request.to_schedule())
    return {
        "success": True,
        "data": DoctorOut.from_doctor(doctor).to_json(),
        "message": "Schedule updated"
    }


# ----------------------------------------------------------------------
# Appointments
# ----------------------------------------------------------------------

@router.get("/appointments", tags=["Appointments"])
def list_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    """Appointments visible to the caller, newest first."""
    appointments, pagination = admission.list(
        actor,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [AppointmentOut.model_validate(a).to_json() for a in appointments],
        "pagination": pagination
    }


@router.get("/appointments/upcoming", tags=["Appointments"])
def upcoming_appointments(
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    """Next scheduled or confirmed appointments."""
    appointments = admission.upcoming(actor)
    return {
        "success": True,
        "data": [AppointmentOut.model_validate(a).to_json() for a in appointments]
    }


@router.post("/appointments", tags=["Appointments"], status_code=status.HTTP_201_CREATED)
def create_appointment(
    request: BookingRequest,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    """
    Book a slot for the calling patient.

    Raises:
        400: Slot already booked, or the slot/date is not bookable
        404: Unknown clinic or doctor
    """
    appointment = admission.create_booking(
        patient_id=actor.user_id,
        clinic_id=request.clinic_id,
        doctor_id=request.doctor_id,
        appointment_date=request.appointment_date,
        time_slot=request.time_slot,
        type=request.type,
        reason=request.reason,
        symptoms=request.symptoms,
    )
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment booked"
    }


@router.get("/appointments/{appointment_id}", tags=["Appointments"])
def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    appointment = admission.get(appointment_id, actor)
    return {"success": True, "data": AppointmentOut.model_validate(appointment).to_json()}


@router.put("/appointments/{appointment_id}", tags=["Appointments"])
def update_appointment(
    appointment_id: str,
    request: AppointmentUpdateRequest,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    """Edit or reschedule an appointment. A new date/slot is conflict-checked."""
    appointment = admission.update(
        appointment_id, actor, **request.model_dump(exclude_none=True)
    )
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment updated"
    }


@router.delete("/appointments/{appointment_id}", tags=["Appointments"])
def cancel_appointment(
    appointment_id: str,
    request: Optional[CancelRequest] = None,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    """Cancel an appointment (status change, never a delete). Frees the slot."""
    reason = request.reason if request else None
    appointment = admission.cancel(appointment_id, actor, reason=reason)
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment cancelled"
    }


@router.post("/appointments/{appointment_id}/confirm", tags=["Appointments"])
def confirm_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    appointment = admission.confirm(appointment_id, actor)
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment confirmed"
    }


@router.post("/appointments/{appointment_id}/start", tags=["Appointments"])
def start_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    appointment = admission.start(appointment_id, actor)
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment in progress"
    }


@router.post("/appointments/{appointment_id}/complete", tags=["Appointments"])
def complete_appointment(
    appointment_id: str,
    request: Optional[CompleteRequest] = None,
    actor: Actor = Depends(get_actor),
    admission: BookingAdmission = Depends(get_admission)
):
    notes = request.notes if request else None
    appointment = admission.complete(appointment_id, actor, notes=notes)
    return {
        "success": True,
        "data": AppointmentOut.model_validate(appointment).to_json(),
        "message": "Appointment completed"
    }


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clinic_booking.api_server:app",
        host="0.0.0.0",
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower()
    )
