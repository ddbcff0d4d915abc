from fastapi.responses import JSONResponse, Response

from bandset.utils import slugify


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message, **extra})


def pdf_response(data: bytes, title: str) -> Response:
    filename = f'{slugify(title)}.pdf'
    return Response(
        content=data,
        media_type='application/pdf',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
