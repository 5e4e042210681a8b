from fastapi.responses import JSONResponse


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "success": True,
            "message": message,
            **(data or {}),
        }
    )


def error_response(error, status=400, data=None):
    return JSONResponse(
        status_code=status,
        content={
            "error": error,
            **(data or {}),
        }
    )


def json_response(content, status=200):
    """Bare JSON body (entity arrays, backend payloads) without the success envelope."""
    return JSONResponse(status_code=status, content=content)
