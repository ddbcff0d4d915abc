"""Groups, members and invitations."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from bandset.api.deps import PathId, get_current_user, group_admin, group_member, group_owner
from bandset.api.schemas import (
    GroupCreate,
    GroupDetail,
    GroupOut,
    GroupSummary,
    GroupUpdate,
    InvitationOut,
    InviteRequest,
    MemberOut,
    RoleUpdate,
    Success,
)
from bandset.auth import log_event
from bandset.auth.access import get_membership
from bandset.db import get_db
from bandset.db import groups as groups_db
from bandset.db.models import Group, Membership, User

router = APIRouter(prefix='/api', tags=['groups'])


def group_summary(db: Session, group: Group, membership: Membership) -> GroupSummary:
    counts = groups_db.group_counts(db, group.id)
    return GroupSummary(
        **GroupOut.model_validate(group).model_dump(),
        role=membership.role,
        member_count=counts['members'],
        song_count=counts['songs'],
        performance_count=counts['performances'],
    )


def member_out(membership: Membership) -> MemberOut:
    user = membership.user
    return MemberOut(
        id=membership.id,
        user_id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=membership.role,
        joined_at=membership.joined_at,
    )


#############################
# Groups
#############################


@router.get('/groups', response_model=list[GroupSummary])
def list_groups(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [
        group_summary(db, group, get_membership(db, user.id, group.id))
        for group in groups_db.get_groups_for_user(db, user.id)
    ]


@router.post('/groups', response_model=GroupSummary, status_code=status.HTTP_201_CREATED)
def create_group(body: GroupCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    group = groups_db.create_group(db, user.id, body.name.strip(), body.description)
    log_event(db, user.id, 'group_created', {'group_id': group.id})
    return group_summary(db, group, get_membership(db, user.id, group.id))


@router.get('/groups/{group_id}', response_model=GroupDetail)
def get_group(group_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    group = db.get(Group, group_id)
    summary = group_summary(db, group, membership)
    members = [member_out(m) for m in groups_db.get_group_members(db, group_id)]
    return GroupDetail(**summary.model_dump(), members=members)


@router.put('/groups/{group_id}', response_model=GroupSummary)
def update_group(
    group_id: PathId,
    body: GroupUpdate,
    membership: Membership = Depends(group_admin),
    db: Session = Depends(get_db),
):
    group = groups_db.update_group(db, db.get(Group, group_id), body.name, body.description)
    return group_summary(db, group, membership)


@router.delete('/groups/{group_id}', response_model=Success)
def delete_group(group_id: PathId, membership: Membership = Depends(group_owner), db: Session = Depends(get_db)):
    user_id = membership.user_id
    groups_db.delete_group(db, db.get(Group, group_id))
    log_event(db, user_id, 'group_deleted', {'group_id': group_id})
    return Success()


#############################
# Members
#############################


@router.get('/groups/{group_id}/members', response_model=list[MemberOut])
def list_members(group_id: PathId, membership: Membership = Depends(group_member), db: Session = Depends(get_db)):
    return [member_out(m) for m in groups_db.get_group_members(db, group_id)]


@router.delete('/groups/{group_id}/members/{member_id}', response_model=Success)
def remove_member(
    group_id: PathId,
    member_id: PathId,
    membership: Membership = Depends(group_admin),
    db: Session = Depends(get_db),
):
    groups_db.remove_member(db, membership, member_id)
    log_event(db, membership.user_id, 'member_removed', {'group_id': group_id, 'member_id': member_id})
    return Success()


@router.put('/groups/{group_id}/members/{member_id}/role', response_model=MemberOut)
def update_member_role(
    group_id: PathId,
    member_id: PathId,
    body: RoleUpdate,
    membership: Membership = Depends(group_owner),
    db: Session = Depends(get_db),
):
    member = groups_db.update_member_role(db, group_id, member_id, body.role)
    log_event(db, membership.user_id, 'member_role_changed', {
        'group_id': group_id, 'member_id': member_id, 'role': body.role,
    })
    return member_out(member)


@router.post('/groups/{group_id}/leave', response_model=Success)
def leave_group(group_id: PathId, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    groups_db.leave_group(db, user.id, group_id)
    log_event(db, user.id, 'group_left', {'group_id': group_id})
    return Success()


#############################
# Invitations
#############################


@router.post('/groups/{group_id}/invitations', response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def invite(
    group_id: PathId,
    body: InviteRequest,
    membership: Membership = Depends(group_admin),
    db: Session = Depends(get_db),
):
    invitation = groups_db.invite(db, membership.user_id, group_id, body.email, body.role)
    log_event(db, membership.user_id, 'invitation_sent', {'group_id': group_id, 'invitation_id': invitation.id})
    return InvitationOut.model_validate(invitation)


@router.get('/groups/{group_id}/invitations', response_model=list[InvitationOut])
def list_invitations(group_id: PathId, membership: Membership = Depends(group_admin), db: Session = Depends(get_db)):
    return [InvitationOut.model_validate(i) for i in groups_db.list_invitations(db, group_id)]


@router.get('/invitations', response_model=list[InvitationOut])
def my_invitations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [InvitationOut.model_validate(i) for i in groups_db.my_invitations(db, user)]


@router.post('/invitations/{invitation_id}/accept', response_model=GroupSummary)
def accept_invitation(invitation_id: PathId, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership = groups_db.accept_invitation(db, user, invitation_id)
    log_event(db, user.id, 'invitation_accepted', {'invitation_id': invitation_id})
    return group_summary(db, membership.group, membership)


@router.post('/invitations/{invitation_id}/decline', response_model=Success)
def decline_invitation(invitation_id: PathId, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    groups_db.decline_invitation(db, user, invitation_id)
    log_event(db, user.id, 'invitation_declined', {'invitation_id': invitation_id})
    return Success()
