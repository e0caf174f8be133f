import json

from asgiref.sync import async_to_sync
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, redirect
from django.views.decorators.http import require_POST

from .engine import BoardEngine, MutationStatus
from .models import Project

STATUS_CODES = {
    MutationStatus.COMMITTED: 200,
    MutationStatus.NOOP: 200,
    MutationStatus.INVALID: 400,
    MutationStatus.ABORTED: 400,
    MutationStatus.REJECTED: 409,
    MutationStatus.ROLLED_BACK: 502,
}


def board_list(request):
    projects = Project.objects.all()
    if projects.count() == 1:
        return redirect("board_detail", slug=projects.first().slug)
    return JsonResponse(
        {
            "projects": [
                {"name": p.name, "slug": p.slug, "description": p.description}
                for p in projects
            ]
        }
    )


def board_detail(request, slug):
    project = get_object_or_404(Project, slug=slug)
    engine = async_to_sync(BoardEngine.load)(project.pk)
    return JsonResponse({"project": _project_data(project), **engine.snapshot().as_dict()})


@require_POST
def board_drag(request, slug):
    project = get_object_or_404(Project, slug=slug)
    data = _json_body(request)
    if data is None:
        return JsonResponse({"error": "Request body must be a JSON object."}, status=400)
    accepts = data.get("accepts")
    if accepts is not None and not (
        isinstance(accepts, list) and all(isinstance(value, str) for value in accepts)
    ):
        return JsonResponse({"error": "accepts must be a list of types."}, status=400)

    async def drag():
        engine = await BoardEngine.load(project.pk)
        if not engine.start_drag(data.get("active_id"), data.get("active_type")):
            return engine, None
        over_data = {"type": data.get("over_type")}
        if accepts is not None:
            over_data["accepts"] = accepts
        outcome = await engine.end_drag(data.get("over_id"), over_data)
        await engine.drain()
        return engine, outcome

    engine, outcome = async_to_sync(drag)()
    if outcome is None:
        return JsonResponse({"error": "Nothing to drag."}, status=400)
    return _outcome_response(project, engine, outcome)


@require_POST
def item_status(request, slug, item_id):
    project = get_object_or_404(Project, slug=slug)
    data = _json_body(request)
    if data is None or "status" not in data:
        return JsonResponse({"error": "Expected a JSON object with a status."}, status=400)
    return _run(project, lambda engine: engine.set_item_status(str(item_id), data["status"]))


@require_POST
def column_ruler(request, slug, column_id):
    project = get_object_or_404(Project, slug=slug)
    data = _json_body(request) or {}
    enabled = bool(data.get("enabled", True))
    return _run(project, lambda engine: engine.set_ruler(str(column_id), enabled))


def _run(project, operation):
    async def run():
        engine = await BoardEngine.load(project.pk)
        outcome = await operation(engine)
        await engine.drain()
        return engine, outcome

    engine, outcome = async_to_sync(run)()
    return _outcome_response(project, engine, outcome)


def _outcome_response(project, engine, outcome):
    return JsonResponse(
        {
            "project": _project_data(project),
            "outcome": outcome.as_dict(),
            **engine.snapshot().as_dict(),
        },
        status=STATUS_CODES[outcome.status],
    )


def _project_data(project):
    return {"id": str(project.pk), "name": project.name, "slug": project.slug}


def _json_body(request):
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
