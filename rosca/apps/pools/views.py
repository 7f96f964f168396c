from django.http import JsonResponse
from django.views.decorators.http import require_GET

from rosca.apps.pools.models import Pool, Member, Cycle, CycleContribution

MAX_PAGE_SIZE = 500


def _amount(value):
    return str(int(value))


def _pool_json(pool: Pool) -> dict:
    return {
        "id": pool.id,
        "creator": pool.creator,
        "name": pool.name,
        "description": pool.description,
        "maxMembers": pool.max_members,
        "contributionPerPeriod": _amount(pool.contribution_per_period),
        "periodDuration": _amount(pool.period_duration),
        "yieldBonusSplit": pool.yield_bonus_split,
        "state": pool.state,
        "currentCycle": pool.current_cycle,
        "totalCycles": pool.total_cycles,
        "cycleStartTime": _amount(pool.cycle_start_time),
        "createdAtBlock": _amount(pool.created_at_block),
        "createdAtTimestamp": _amount(pool.created_at_timestamp),
    }


def _member_json(member: Member) -> dict:
    return {
        "id": member.id,
        "poolId": member.pool_id,
        "address": member.address,
        "contribution": _amount(member.contribution),
        "joinedAtBlock": _amount(member.joined_at_block),
        "joinedAtTimestamp": _amount(member.joined_at_timestamp),
    }


def _cycle_json(cycle: Cycle) -> dict:
    return {
        "id": cycle.id,
        "poolId": cycle.pool_id,
        "index": cycle.index,
        "winner": cycle.winner,
        "prize": _amount(cycle.prize),
        "yieldBonus": _amount(cycle.yield_bonus),
        "compounded": _amount(cycle.compounded),
        "timestamp": _amount(cycle.timestamp),
    }


def _contribution_json(row: CycleContribution) -> dict:
    return {
        "id": row.id,
        "poolId": row.pool_id,
        "cycleIndex": row.cycle_index,
        "memberAddress": row.member_address,
        "amount": _amount(row.amount),
        "isLiquidated": row.is_liquidated,
        "timestamp": _amount(row.timestamp),
    }


def _limit(request) -> int:
    try:
        limit = int(request.GET.get("limit", 100))
    except (TypeError, ValueError):
        limit = 100
    return max(1, min(limit, MAX_PAGE_SIZE))


def _items(queryset, serializer, request) -> JsonResponse:
    rows = list(queryset[: _limit(request)])
    return JsonResponse({"items": [serializer(r) for r in rows], "count": len(rows)})


@require_GET
def pool_list(request):
    qs = Pool.objects.all()
    state = request.GET.get("state")
    if state:
        qs = qs.filter(state=state)
    creator = request.GET.get("creator")
    if creator:
        qs = qs.filter(creator=creator.lower())
    return _items(qs, _pool_json, request)


@require_GET
def pool_detail(request, pool_id: str):
    pool = Pool.objects.filter(pk=pool_id.lower()).first()
    if pool is None:
        return JsonResponse({"error": "Pool not found"}, status=404)
    return JsonResponse(_pool_json(pool))


@require_GET
def member_list(request):
    qs = Member.objects.all()
    pool = request.GET.get("pool")
    if pool:
        qs = qs.filter(pool_id=pool.lower())
    address = request.GET.get("address")
    if address:
        qs = qs.filter(address=address.lower())
    return _items(qs, _member_json, request)


@require_GET
def cycle_list(request):
    qs = Cycle.objects.all()
    pool = request.GET.get("pool")
    if pool:
        qs = qs.filter(pool_id=pool.lower())
    winner = request.GET.get("winner")
    if winner:
        qs = qs.filter(winner=winner.lower())
    return _items(qs, _cycle_json, request)


@require_GET
def cycle_contribution_list(request):
    qs = CycleContribution.objects.all()
    pool = request.GET.get("pool")
    if pool:
        qs = qs.filter(pool_id=pool.lower())
    member = request.GET.get("member")
    if member:
        qs = qs.filter(member_address=member.lower())
    cycle = request.GET.get("cycle")
    if cycle is not None:
        try:
            qs = qs.filter(cycle_index=int(cycle))
        except ValueError:
            return JsonResponse({"error": "Invalid cycle"}, status=400)
    return _items(qs, _contribution_json, request)
