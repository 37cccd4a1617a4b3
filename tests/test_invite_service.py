import pytest
from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.models.trips.trip_invite import Invitation, InviteStatus
from app.schemas.trip.invite import InvitationCreate
from app.services.dashboard.dashboard_service import dashboard_cache_key
from app.services.trips.invite_service import InvitationService


@pytest.fixture
def service(cache):
    return InvitationService(cache)


async def participant_ids(trip_service, db, trip_id):
    trip = await trip_service.get_by_id(db, trip_id)
    return trip.participant_ids()


async def invite(service, db, trip, sender, email):
    return await service.create_invitation(db, trip.id, InvitationCreate(email=email), sender)


@pytest.mark.asyncio
async def test_create_invitation_is_pending_and_leaves_participants_alone(
    db, service, trip_service, make_user, make_trip, outbox
):
    alice = await make_user("alice", name="Alice")
    trip = await make_trip(alice)

    invitation = await invite(service, db, trip, alice, "b@example.com")

    assert invitation.status == "pending"
    assert invitation.sender_id == alice.id
    assert invitation.trip_name == "Rome Trip"
    assert await participant_ids(trip_service, db, trip.id) == {alice.id}
    assert outbox.recipients() == [["b@example.com"]]
    assert "Alice" in outbox.messages[0]["subject"]


@pytest.mark.asyncio
async def test_accept_adds_participant_and_notifies_others(
    db, service, trip_service, make_user, make_trip, outbox
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com", name="Bob")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    outbox.messages.clear()

    await service.accept_invitation(db, invitation.id, bob.email)

    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.accepted
    assert await participant_ids(trip_service, db, trip.id) == {alice.id, bob.id}
    assert outbox.recipients() == [["alice@example.com"]]
    assert "Bob joined Rome Trip" == outbox.messages[0]["subject"]


@pytest.mark.asyncio
async def test_second_accept_conflicts_without_changes(
    db, service, trip_service, make_user, make_trip, outbox
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    await service.accept_invitation(db, invitation.id, bob.email)
    outbox.messages.clear()

    with pytest.raises(ConflictError):
        await service.accept_invitation(db, invitation.id, bob.email)

    assert await participant_ids(trip_service, db, trip.id) == {alice.id, bob.id}
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_invitee_registered_after_invite_can_accept(
    db, service, trip_service, make_user, make_trip
):
    alice = await make_user("alice")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "carol@example.com")

    carol = await make_user("carol", email="carol@example.com")
    await service.accept_invitation(db, invitation.id, carol.email)

    assert await participant_ids(trip_service, db, trip.id) == {alice.id, carol.id}


@pytest.mark.asyncio
async def test_self_invite_conflicts(db, service, make_user, make_trip, outbox):
    alice = await make_user("alice", email="a@own-email.com")
    trip = await make_trip(alice)

    with pytest.raises(ConflictError):
        await invite(service, db, trip, alice, "A@Own-Email.com")

    result = await db.execute(select(Invitation))
    assert result.scalars().all() == []
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_non_participant_cannot_invite(db, service, make_user, make_trip):
    alice = await make_user("alice")
    dave = await make_user("dave")
    trip = await make_trip(alice)

    with pytest.raises(ForbiddenError):
        await invite(service, db, trip, dave, "anyone@example.com")


@pytest.mark.asyncio
async def test_invite_to_missing_trip_is_not_found(db, service, make_user):
    alice = await make_user("alice")

    with pytest.raises(NotFoundError):
        await service.create_invitation(db, 999, InvitationCreate(email="b@example.com"), alice)


@pytest.mark.asyncio
async def test_duplicate_pending_invitation_conflicts(db, service, make_user, make_trip):
    alice = await make_user("alice")
    trip = await make_trip(alice)
    await invite(service, db, trip, alice, "b@example.com")

    with pytest.raises(ConflictError) as exc:
        await invite(service, db, trip, alice, "B@example.com")
    assert "already been invited" in exc.value.detail


@pytest.mark.asyncio
async def test_inviting_existing_participant_conflicts(db, service, make_user, make_trip):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    await trip_service_join(db, service, trip, bob)

    with pytest.raises(ConflictError) as exc:
        await invite(service, db, trip, alice, "b@example.com")
    assert "already a participant" in exc.value.detail


async def trip_service_join(db, service, trip, user):
    return await service.trips.join_by_code(db, trip.trip_code, user)


@pytest.mark.asyncio
async def test_reinvite_after_decline_is_allowed(db, service, make_user, make_trip):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    first = await invite(service, db, trip, alice, "b@example.com")
    await service.decline_invitation(db, first.id, bob.email)

    second = await invite(service, db, trip, alice, "b@example.com")

    assert second.id != first.id
    assert second.status == "pending"


@pytest.mark.asyncio
async def test_pending_uniqueness_is_enforced_by_storage(db, make_user, make_trip):
    alice = await make_user("alice")
    trip = await make_trip(alice)
    db.add(Invitation(trip_id=trip.id, email="b@example.com", status=InviteStatus.pending))
    await db.commit()

    db.add(Invitation(trip_id=trip.id, email="b@example.com", status=InviteStatus.pending))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()


@pytest.mark.asyncio
async def test_accept_by_wrong_addressee_is_forbidden(
    db, service, trip_service, make_user, make_trip
):
    alice = await make_user("alice")
    eve = await make_user("eve")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")

    with pytest.raises(ForbiddenError):
        await service.accept_invitation(db, invitation.id, eve.email)

    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.pending
    assert await participant_ids(trip_service, db, trip.id) == {alice.id}


@pytest.mark.asyncio
async def test_accept_missing_invitation_is_not_found(db, service):
    with pytest.raises(NotFoundError):
        await service.accept_invitation(db, 12345, "b@example.com")


@pytest.mark.asyncio
async def test_accept_is_case_insensitive_on_email(
    db, service, trip_service, make_user, make_trip
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "B@Example.com")

    await service.accept_invitation(db, invitation.id, "B@EXAMPLE.COM")

    assert bob.id in await participant_ids(trip_service, db, trip.id)


@pytest.fixture
def resolved_elsewhere(db, service, monkeypatch):
    """Resolve an invitation behind the service's back, after its status check."""
    async def _resolve(invitation_id, status):
        await db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id)
            .values(status=status)
        )
        await db.commit()

        async def stale_check(db, invitation_id, caller_email):
            return await service.get_invitation(db, invitation_id)

        monkeypatch.setattr(service, "_get_pending_for_caller", stale_check)
    return _resolve


@pytest.mark.asyncio
async def test_accept_losing_race_conflicts_without_side_effects(
    db, service, trip_service, make_user, make_trip, outbox, resolved_elsewhere
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    trip_id, alice_id, bob_email = trip.id, alice.id, bob.email
    outbox.messages.clear()

    await resolved_elsewhere(invitation.id, InviteStatus.declined)

    # The rollback inside the service expires every loaded instance
    with pytest.raises(ConflictError):
        await service.accept_invitation(db, invitation.id, bob_email)

    assert await participant_ids(trip_service, db, trip_id) == {alice_id}
    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.declined
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_decline_losing_race_conflicts_without_side_effects(
    db, service, trip_service, make_user, make_trip, outbox, resolved_elsewhere
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    await trip_service.join_by_code(db, trip.trip_code, bob)
    trip_id, alice_id, bob_id, bob_email = trip.id, alice.id, bob.id, bob.email
    outbox.messages.clear()

    # join_by_code already accepted it; force a stale pending read
    await resolved_elsewhere(invitation.id, InviteStatus.accepted)

    with pytest.raises(ConflictError):
        await service.decline_invitation(db, invitation.id, bob_email, reason="Changed my mind")

    assert await participant_ids(trip_service, db, trip_id) == {alice_id, bob_id}
    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.accepted
    assert stored.decline_reason is None
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_accept_when_already_joined_by_code_keeps_single_membership(
    db, service, trip_service, make_user, make_trip
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")

    # Joining by code resolves the pending invitation
    await trip_service.join_by_code(db, trip.trip_code, bob)

    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.accepted
    with pytest.raises(ConflictError):
        await service.accept_invitation(db, invitation.id, bob.email)
    members = await trip_service.list_members(db, trip.id, alice)
    assert [m.user_id for m in members.members].count(bob.id) == 1


@pytest.mark.asyncio
async def test_decline_stores_reason_and_notifies_everyone(
    db, service, trip_service, make_user, make_trip, outbox
):
    alice = await make_user("alice")
    frank = await make_user("frank")
    bob = await make_user("bob", email="b@example.com", name="Bob")
    trip = await make_trip(alice)
    await trip_service.join_by_code(db, trip.trip_code, frank)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    outbox.messages.clear()

    await service.decline_invitation(db, invitation.id, bob.email, reason="  Busy that week ")

    stored = await service.get_invitation(db, invitation.id)
    assert stored.status == InviteStatus.declined
    assert stored.decline_reason == "Busy that week"
    assert await participant_ids(trip_service, db, trip.id) == {alice.id, frank.id}
    assert sorted(outbox.messages[0]["to"]) == ["alice@example.com", "frank@example.com"]
    assert "Busy that week" in outbox.messages[0]["text"]


@pytest.mark.asyncio
async def test_declined_invitation_is_terminal(db, service, make_user, make_trip):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    invitation = await invite(service, db, trip, alice, "b@example.com")
    await service.decline_invitation(db, invitation.id, bob.email)

    with pytest.raises(ConflictError):
        await service.accept_invitation(db, invitation.id, bob.email)
    with pytest.raises(ConflictError):
        await service.decline_invitation(db, invitation.id, bob.email)


@pytest.mark.asyncio
async def test_notifier_failure_does_not_undo_accept(
    db, service, trip_service, make_user, make_trip, outbox
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    outbox.fail = True
    invitation = await invite(service, db, trip, alice, "b@example.com")

    await service.accept_invitation(db, invitation.id, bob.email)

    assert await participant_ids(trip_service, db, trip.id) == {alice.id, bob.id}
    assert outbox.messages == []


@pytest.mark.asyncio
async def test_notifications_are_queued_as_background_tasks(
    db, service, make_user, make_trip, outbox
):
    alice = await make_user("alice")
    trip = await make_trip(alice)
    background_tasks = BackgroundTasks()

    await service.create_invitation(
        db, trip.id, InvitationCreate(email="b@example.com"), alice, background_tasks
    )

    assert outbox.messages == []
    assert len(background_tasks.tasks) == 1
    await background_tasks()
    assert outbox.recipients() == [["b@example.com"]]


@pytest.mark.asyncio
async def test_invitation_lists(db, service, make_user, make_trip):
    alice = await make_user("alice", name="Alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    await trip_service_join(db, service, trip, await make_user("frank"))
    await invite(service, db, trip, alice, "b@example.com")

    mine = await service.list_for_user(db, bob.id)
    assert [(i.trip_name, i.sender_name, i.status) for i in mine] == [("Rome Trip", "Alice", "pending")]

    for_trip = await service.list_for_trip(db, trip.id, alice.id)
    assert [i.email for i in for_trip] == ["b@example.com"]


@pytest.mark.asyncio
async def test_only_creator_lists_trip_invitations(db, service, make_user, make_trip):
    alice = await make_user("alice")
    frank = await make_user("frank")
    trip = await make_trip(alice)
    await trip_service_join(db, service, trip, frank)

    with pytest.raises(ForbiddenError):
        await service.list_for_trip(db, trip.id, frank.id)


@pytest.mark.asyncio
async def test_invitation_changes_invalidate_invitee_dashboard(
    db, service, cache, make_user, make_trip
):
    alice = await make_user("alice")
    bob = await make_user("bob", email="b@example.com")
    trip = await make_trip(alice)
    cache.store[dashboard_cache_key(bob.id)] = {"stale": True}

    await invite(service, db, trip, alice, "b@example.com")

    assert dashboard_cache_key(bob.id) not in cache.store
