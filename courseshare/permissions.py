from courseshare.exceptions import PermissionGuest, PermissionNotShared, PermissionPrivate
from courseshare.lookups import Visibility


def grant(visibility, creator_id, credentials):
    """
    Enforce access rights on an item, for reads and updates alike.

    The checks run in a fixed order: admin role, guest on a friends-only item,
    non-friend on a friends-only item, then private items. The order decides
    which error a client receives, e.g. a guest opening a private item gets
    PermissionPrivate, not PermissionGuest.
    """
    if credentials.is_admin:
        return

    is_creator = credentials.user_id is not None and credentials.user_id == creator_id

    if visibility == Visibility.FRIENDS and credentials.is_guest:
        # get a log-in and make friends
        raise PermissionGuest()

    if visibility == Visibility.FRIENDS and not credentials.is_friend(creator_id) and not is_creator:
        raise PermissionNotShared()

    if visibility == Visibility.PRIVATE and not is_creator:
        raise PermissionPrivate()
