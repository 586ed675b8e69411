from terrin.common.enums import Permission, UserRole
from terrin.common.permissions import has_permission, is_professional, normalize_role


def test_normalize_role():
    assert normalize_role("contractor") == UserRole.PROFESSIONAL
    assert normalize_role("both") == UserRole.BOTH
    assert normalize_role("something-else") == UserRole.VISITOR
    assert normalize_role(None) == UserRole.VISITOR


def test_homeowner_permissions():
    assert has_permission("homeowner", Permission.CREATE_PROJECTS)
    assert has_permission("homeowner", Permission.CREATE_PAYMENTS)
    assert not has_permission("homeowner", Permission.RECEIVE_PAYMENTS)


def test_professional_permissions():
    assert has_permission("professional", Permission.RECEIVE_PAYMENTS)
    assert has_permission("contractor", Permission.MANAGE_CONTRACTOR_PROFILE)
    assert not has_permission("professional", Permission.CREATE_ESTIMATES)


def test_both_and_admin():
    for permission in (Permission.CREATE_PROJECTS, Permission.RECEIVE_PAYMENTS):
        assert has_permission(UserRole.BOTH, permission)
    assert all(has_permission("admin", p) for p in Permission)
    assert not has_permission("visitor", Permission.SEND_MESSAGES)


def test_is_professional():
    assert is_professional("both")
    assert is_professional("contractor")
    assert not is_professional("homeowner")
