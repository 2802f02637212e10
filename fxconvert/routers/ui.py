from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from fxconvert.core.errors import ConverterError
from fxconvert.services.controller import ConversionController

router = APIRouter(tags=["ui"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def get_controller(request: Request) -> ConversionController:
    return request.app.state.controller


def _back_to_screen() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip().upper()


@router.get("/", response_class=HTMLResponse)
async def ui_converter(request: Request, ctl: ConversionController = Depends(get_controller)):
    """The converter screen: amount input, two pickers, actions and the result line.

    Pending notices are popped here so each alert is shown exactly once.
    """
    settings = request.app.state.settings
    context = {
        "title": settings.app_name,
        "version": settings.version,
        "state": ctl.state,
        "alerts": [n.as_dict() for n in ctl.notices.pop_all()],
    }
    return templates.TemplateResponse(request, "converter.html", context)


@router.post("/ui/convert", response_class=RedirectResponse)
async def ui_convert(
    amount: str = Form(""),
    from_currency: Optional[str] = Form(None),
    to_currency: Optional[str] = Form(None),
    ctl: ConversionController = Depends(get_controller),
):
    try:
        await ctl.convert(
            amount=amount,
            from_currency=_blank_to_none(from_currency),
            to_currency=_blank_to_none(to_currency),
        )
    except ConverterError as e:
        ctl.notices.post(e.title, e.message)
    return _back_to_screen()


@router.post("/ui/swap", response_class=RedirectResponse)
async def ui_swap(ctl: ConversionController = Depends(get_controller)):
    ctl.swap()
    return _back_to_screen()


@router.post("/ui/clear", response_class=RedirectResponse)
async def ui_clear(ctl: ConversionController = Depends(get_controller)):
    try:
        ctl.clear()
    except ConverterError as e:
        ctl.notices.post(e.title, e.message)
    return _back_to_screen()
