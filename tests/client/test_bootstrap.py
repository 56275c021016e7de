import pytest

from pytestqt.qtbot import QtBot

from conftest import (
    ACCESS_TOKEN,
    PATH_SEARCH,
    PATH_SUMMARY,
    PATH_USER,
    Recorder,
    failure,
    ok,
)

from destinyapi import client as m_client, errors, request, session


def test_bootstrap_completes(destiny: m_client.Destiny, transport):
    assert destiny.readystate == session.ReadyState.COMPLETE
    assert destiny.session.username == 'Eden'
    assert destiny.session.platform is session.Platform.PLAYSTATION
    assert destiny.session.id == '123'
    assert len(destiny.characters) == 2
    assert [c.id for c in destiny.characters] == ['B', 'A']


def test_bootstrap_phases_in_order(destiny: m_client.Destiny, transport):
    paths = [req.url.split('/Platform/')[1].split('?')[0] for req in transport.calls]
    assert paths == [PATH_USER, PATH_SEARCH, PATH_SUMMARY]


def test_bootstrap_xbox(config, auth, transport, scheduler):
    transport.route(PATH_USER, ok({'gamerTag': 'Eden'}), replace=True)
    transport.route(
        'Destiny/SearchDestinyPlayer/1/Eden/', ok([{'membershipId': '456'}])
    )
    transport.route('Destiny/1/Account/456/Summary/', ok({'data': {'characters': []}}))

    destiny = m_client.Destiny(config, auth, transport, scheduler)
    assert destiny.session.platform is session.Platform.XBOX
    assert destiny.session.id == '456'
    assert destiny.characters.active() is None
    destiny.destroy()


def test_signals_and_state_while_loading(
    qtbot: QtBot, config, auth, transport, scheduler
):
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    assert destiny.readystate == session.ReadyState.LOADING

    changes = []
    destiny.changed.connect(lambda name, new, old: changes.append((name, new, old)))

    # Identity and membership resolved, summary still in flight
    transport.flush()
    transport.flush()
    assert destiny.session.username == 'Eden'
    assert destiny.readystate == session.ReadyState.LOADING
    assert destiny.session.id == ''

    with qtbot.waitSignal(destiny.refreshed) as blocker:
        transport.flush()
    assert blocker.args == [None]
    assert destiny.readystate == session.ReadyState.COMPLETE
    assert destiny.session.id == '123'

    assert ('username', 'Eden', '') in changes
    assert ('id', '123', '') in changes
    assert (
        'readystate',
        session.ReadyState.COMPLETE,
        session.ReadyState.LOADING,
    ) in changes
    destiny.destroy()


def test_requests_deferred_until_refreshed(config, auth, transport, scheduler):
    transport.route('Destiny/Manifest/', ok({'version': '1'}))
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)

    callback = Recorder()
    destiny.send(request.Request(['Destiny', 'Manifest']), callback)
    assert len(destiny.gate) == 1

    transport.flush()
    transport.flush()
    assert transport.count('Destiny/Manifest/') == 0
    assert not callback.called

    # Summary answered, the deferred request goes out
    transport.flush()
    assert transport.count('Destiny/Manifest/') == 1
    assert not callback.called

    transport.flush()
    assert callback.calls == [(None, {'version': '1'})]
    destiny.destroy()


def test_bootstrap_failure(qtbot: QtBot, config, auth, transport, scheduler):
    transport.route(PATH_SEARCH, failure(217, 'User not found'), replace=True)
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)

    callback = Recorder()
    destiny.send(request.Request(['Destiny', 'Manifest']), callback)

    with qtbot.waitSignal(destiny.error) as blocker:
        transport.drain()

    err = blocker.args[0]
    assert isinstance(err, errors.BootstrapError)
    assert err.action == 'login'
    assert isinstance(err.cause, errors.ApplicationError)
    assert err.cause.message == 'User not found'

    assert destiny.readystate == session.ReadyState.CLOSED
    assert destiny.session.username == ''
    assert destiny.session.platform is None
    assert destiny.session.id == ''
    assert auth.access_token == ''

    # Queued callers receive the bootstrap error, nothing was sent for them
    assert callback.calls == [(err, None)]
    assert transport.count('Destiny/Manifest/') == 0
    destiny.destroy()


def test_bootstrap_failure_transport(config, auth, transport, scheduler):
    transport.route(PATH_USER, status=503, text='Down', replace=True)
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    assert destiny.readystate == session.ReadyState.CLOSED
    assert transport.count(PATH_SEARCH) == 0
    destiny.destroy()


def test_bootstrap_no_console_account(config, auth, transport, scheduler):
    errs = []
    transport.route(PATH_USER, ok({'user': {'displayName': 'Eden'}}), replace=True)
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    destiny.error.connect(errs.append)
    transport.drain()
    assert len(errs) == 1
    assert 'No console account' in str(errs[0])
    destiny.destroy()


def test_bootstrap_no_membership(config, auth, transport, scheduler):
    transport.route(PATH_SEARCH, ok([]), replace=True)
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    assert destiny.readystate == session.ReadyState.CLOSED
    assert transport.count(PATH_SUMMARY) == 0
    destiny.destroy()


def test_hard_reset_and_rebootstrap(destiny: m_client.Destiny, auth, transport):
    old_characters = destiny.characters
    destiny.reset(hard=True)

    assert destiny.readystate == session.ReadyState.CLOSED
    assert destiny.session == session.SessionIdentity()
    assert auth.access_token == ''
    assert destiny.characters is not old_characters
    assert len(destiny.characters) == 0

    auth.access_token = ACCESS_TOKEN
    destiny.refresh()
    assert destiny.readystate == session.ReadyState.COMPLETE
    assert destiny.session.username == 'Eden'
    assert destiny.session.id == '123'
    assert [c.id for c in destiny.characters] == ['B', 'A']


def test_soft_reset_keeps_credentials(destiny: m_client.Destiny, auth):
    destiny.reset()
    assert destiny.readystate == session.ReadyState.CLOSED
    assert auth.access_token == ACCESS_TOKEN


def test_reset_abandons_running_bootstrap(config, auth, transport, scheduler):
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    destiny.reset()
    transport.drain()
    assert destiny.readystate == session.ReadyState.CLOSED
    assert destiny.session.id == ''
    assert transport.count(PATH_SEARCH) == 0
    destiny.destroy()


def test_refresh_emits_refreshing(qtbot: QtBot, destiny: m_client.Destiny):
    with qtbot.waitSignal(destiny.refreshing):
        destiny.refresh()


def test_characters_replaced_on_refresh(destiny: m_client.Destiny):
    before = destiny.characters.find('A')
    destiny.refresh()
    after = destiny.characters.find('A')
    assert after is not None
    assert after is not before


def test_change_unknown_field(destiny: m_client.Destiny):
    with pytest.raises(AttributeError):
        destiny.change(colour='blue')


def test_change_config_field(destiny: m_client.Destiny):
    changes = []
    destiny.changed.connect(lambda name, new, old: changes.append((name, new, old)))
    destiny.change(language='fr', timeout=destiny.config.timeout)
    assert destiny.config.language == 'fr'
    assert changes == [('language', 'fr', 'en')]


def test_destroy_closes_transport(destiny: m_client.Destiny, transport, scheduler):
    destiny.destroy()
    assert transport.closed
    assert not scheduler.timers


def test_refresh_from_error_listener(config, auth, transport, scheduler):
    transport.route(PATH_USER, failure(99, 'Web auth required'), replace=True)
    transport.route(PATH_USER, ok({'psnId': 'Eden'}))
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)

    def relogin(_):
        auth.access_token = ACCESS_TOKEN
        destiny.refresh()

    refreshed = []
    destiny.refreshed.connect(refreshed.append)
    destiny.error.connect(relogin)
    transport.drain()

    assert destiny.readystate == session.ReadyState.COMPLETE
    assert destiny.session.id == '123'
    assert transport.count(PATH_USER) == 2
    assert len(refreshed) == 2
    assert isinstance(refreshed[0], errors.BootstrapError)
    assert refreshed[1] is None
    destiny.destroy()


@pytest.mark.parametrize(
    'payload',
    [{'membershipId': '123'}, 'Eden', 123],
)
def test_bootstrap_unexpected_membership_search(
    config, auth, transport, scheduler, payload
):
    errs = []
    transport.route(PATH_SEARCH, ok(payload), replace=True)
    transport.hold = True
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    destiny.error.connect(errs.append)
    transport.drain()
    assert destiny.readystate == session.ReadyState.CLOSED
    assert isinstance(errs[0].cause, errors.ApplicationError)
    assert transport.count(PATH_SUMMARY) == 0
    destiny.destroy()
