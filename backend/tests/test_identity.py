import uuid

import pytest

from authsvc.core.errors import Conflict, NotFound, Unauthorized, ValidationError


async def test_register_returns_id_key_and_token(identity, tokens, ada):
    result = await identity.register(ada)

    assert isinstance(result["userId"], uuid.UUID)
    assert result["apiKey"]
    assert tokens.verify(result["token"])["userId"] == str(result["userId"])


async def test_register_pairs_free_credential(identity, store, ada):
    result = await identity.register(ada)
    record = await store.find_by_id(result["userId"])

    assert record.email == "ada@x.com"
    assert record.credential.subscription_type == "Free"
    assert record.credential.rate_limit == 100
    assert record.credential.expires_at > record.credential.created_at


async def test_password_is_not_stored_in_plaintext(identity, store, ada):
    result = await identity.register(ada)
    record = await store.find_by_id(result["userId"])
    assert record.password != ada["password"]
    assert record.password.startswith("$argon2")


async def test_same_email_twice_conflicts(identity, ada):
    await identity.register(ada)
    with pytest.raises(Conflict) as exc:
        await identity.register({**ada, "email": "ADA@x.COM"})
    assert exc.value.message == "User already exists"


async def test_login_succeeds(identity, ada):
    registered = await identity.register(ada)
    result = await identity.login({"email": "ada@x.com", "password": "p"})

    assert result["success"] is True
    assert result["user"]["id"] == registered["userId"]
    assert result["user"]["api_key"] == registered["apiKey"]
    assert result["user"]["subscription_type"] == "Free"
    assert "password" not in result["user"]


async def test_wrong_password_and_unknown_email_look_identical(identity, ada):
    await identity.register(ada)

    with pytest.raises(Unauthorized) as wrong_pw:
        await identity.login({"email": "ada@x.com", "password": "nope"})
    with pytest.raises(Unauthorized) as unknown:
        await identity.login({"email": "nobody@x.com", "password": "p"})

    assert wrong_pw.value.to_dict() == unknown.value.to_dict()
    assert wrong_pw.value.message == "Invalid credentials"


async def test_login_validation(identity):
    with pytest.raises(ValidationError):
        await identity.login({"email": "", "password": ""})


async def test_get_user_strips_secrets(identity, ada):
    registered = await identity.register(ada)
    profile = await identity.get_user(str(registered["userId"]))

    assert profile["id"] == registered["userId"]
    assert "password" not in profile
    assert "api_key" not in profile


@pytest.mark.parametrize("user_id", [str(uuid.uuid4()), "not-a-uuid"])
async def test_get_unknown_user(identity, user_id):
    with pytest.raises(NotFound):
        await identity.get_user(user_id)


async def test_admin_create_honours_given_id(identity):
    wanted = uuid.uuid4()
    result = await identity.create_user({
        "id": str(wanted), "full_name": "Bot One", "email": "bot@x.com", "password": "b", "user_type": "Bot",
    })
    assert result == {"id": wanted, "message": "User created successfully"}


async def test_update_and_delete_user(identity, ada):
    uid = (await identity.register(ada))["userId"]

    await identity.update_user(uid, {"full_name": "Augusta Ada King"})
    assert (await identity.get_user(uid))["full_name"] == "Augusta Ada King"

    await identity.delete_user(uid)
    with pytest.raises(NotFound):
        await identity.get_user(uid)
    with pytest.raises(NotFound):
        await identity.delete_user(uid)


async def test_update_rejects_unknown_role(identity, ada):
    uid = (await identity.register(ada))["userId"]
    with pytest.raises(ValidationError):
        await identity.update_user(uid, {"user_type": "User"})


async def test_admin_flag_round_trip(identity, ada):
    uid = (await identity.register(ada))["userId"]
    assert await identity.is_admin(uid) == {"isAdmin": False}

    await identity.set_admin_status(uid, {"isAdmin": True})
    assert await identity.is_admin(uid) == {"isAdmin": True}
    assert await identity.list_admins() == {"adminUsers": [str(uid)]}

    await identity.set_admin_status(uid, {"isAdmin": False})
    profile = await identity.get_user(uid)
    assert profile["user_type"] == "Client"
    assert await identity.list_admins() == {"adminUsers": []}


async def test_set_admin_status_unknown_user(identity):
    with pytest.raises(NotFound):
        await identity.set_admin_status(uuid.uuid4(), {"isAdmin": True})


async def test_credential_lookup(identity, ada):
    registered = await identity.register(ada)

    by_user = await identity.get_credential(user_id=str(registered["userId"]))
    by_key = await identity.get_credential(api_key=registered["apiKey"])
    assert by_user.id == by_key.id

    with pytest.raises(ValidationError):
        await identity.get_credential()
    with pytest.raises(NotFound):
        await identity.get_credential(api_key="xhp_unknown")


async def test_change_subscription(identity, ada):
    uid = (await identity.register(ada))["userId"]
    result = await identity.change_subscription(uid, {"subscription_type": "Enterprise"})

    assert result["subscription_type"] == "Enterprise"
    assert result["rate_limit"] == 50000
    with pytest.raises(NotFound):
        await identity.change_subscription(uuid.uuid4(), {"subscription_type": "Pro"})
