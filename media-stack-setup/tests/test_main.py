import pytest
import os
import sys

import config
import core
import main

@pytest.fixture(autouse=True)
def reset_runtime_flags(monkeypatch):
    """run() sets these globals; restore them after every test."""
    monkeypatch.setattr(config, 'DRY_RUN', False)
    monkeypatch.setattr(config, 'ASSUME_YES', False)
    monkeypatch.setattr(config, 'WSL_MOUNT_ROOT', '/mnt')
    monkeypatch.setattr(config, 'PUID', '1000')
    monkeypatch.setattr(config, 'PGID', '1000')

@pytest.fixture
def docker_ok(mocker):
    mocker.patch('main.check_docker', return_value=(True, 'Docker version 27.3.1, build ce12230'))
    mocker.patch('main.is_docker_daemon_running', return_value=True)

@pytest.fixture
def docker_missing(mocker):
    mocker.patch('main.check_docker', return_value=(False, "'docker' command not found"))
    mocker.patch('main.is_docker_daemon_running', return_value=False)

def answers(*values):
    """input() replacement that replays values and fails if asked for more."""
    remaining = list(values)
    def fake_input(prompt=''):
        assert remaining, f"Unexpected prompt: {prompt}"
        return remaining.pop(0)
    return fake_input

# ===================================================================
# Tests for prompts
# ===================================================================

@pytest.mark.parametrize("reply, expected", [('y', True), ('YES', True), ('n', False), ('no', False)])
def test_confirm_answers(reply, expected):
    assert main.confirm("Continue?", input_func=answers(reply)) is expected

def test_confirm_empty_uses_default():
    assert main.confirm("Continue?", default=True, input_func=answers('')) is True
    assert main.confirm("Continue?", default=False, input_func=answers('')) is False

def test_confirm_reasks_on_garbage():
    assert main.confirm("Continue?", input_func=answers('maybe', 'y')) is True

def test_confirm_assume_yes(monkeypatch):
    monkeypatch.setattr(config, 'ASSUME_YES', True)
    assert main.confirm("Overwrite?", input_func=answers()) is True

def test_prompt_path_reprompts_until_non_empty():
    result = main.prompt_path("Base path", "C:\\docker", answers('', '   ', '\\', 'C:\\docker\\'))
    assert result == 'C:\\docker'

def test_acquire_paths_from_arguments():
    paths = main.acquire_paths('C:\\docker\\', 'D:\\media\\', input_func=answers())
    assert (paths.base_path, paths.media_path) == ('C:\\docker', 'D:\\media')

def test_acquire_paths_prompts_for_missing():
    paths = main.acquire_paths(None, '/srv/media', input_func=answers('/srv/docker/'))
    assert (paths.base_path, paths.media_path) == ('/srv/docker', '/srv/media')

def test_acquire_paths_prompts_for_blank_argument():
    paths = main.acquire_paths('  ', '/srv/media', input_func=answers('/srv/docker'))
    assert paths.base_path == '/srv/docker'

# ===================================================================
# Tests for the prerequisite stage
# ===================================================================

def test_docker_missing_and_declined_exits_nonzero(tmp_path, docker_missing):
    base = tmp_path / 'docker'
    code = main.main(['--base-path', str(base), '--media-path', str(tmp_path / 'media'),
                      '--env-file', str(tmp_path / '.env')], input_func=answers('n'))

    assert code == 1
    assert not base.exists()
    assert not (tmp_path / '.env').exists()

def test_docker_missing_and_accepted_continues(tmp_path, docker_missing):
    code = main.main(['--base-path', str(tmp_path / 'docker'), '--media-path', str(tmp_path / 'media'),
                      '--env-file', str(tmp_path / '.env')], input_func=answers('y'))

    assert code == 0
    assert (tmp_path / '.env').exists()

def test_skip_docker_check(tmp_path, mocker):
    mock_check = mocker.patch('main.check_docker')
    code = main.main(['--skip-docker-check', '--base-path', str(tmp_path / 'docker'),
                      '--media-path', str(tmp_path / 'media'), '--env-file', str(tmp_path / '.env')],
                     input_func=answers())

    assert code == 0
    mock_check.assert_not_called()

def test_daemon_not_running_only_warns(tmp_path, mocker, caplog):
    mocker.patch('main.check_docker', return_value=(True, 'Docker version 27.3.1'))
    mocker.patch('main.is_docker_daemon_running', return_value=False)

    assert main.check_prerequisites(input_func=answers()) is True
    assert 'daemon does not appear to be running' in caplog.text

# ===================================================================
# End-to-end runs
# ===================================================================

@pytest.mark.skipif(sys.platform == 'win32', reason="Drive-letter roots are real paths on Windows")
def test_end_to_end_windows_style_paths(tmp_path, monkeypatch, mocker, docker_ok):
    """Drive-letter inputs, empty tree, no existing .env."""
    monkeypatch.chdir(tmp_path)
    mocker.patch('main.resolve_timezone', return_value='America/New_York')
    spy = mocker.spy(core, 'materialize_directories')
    env_file = tmp_path / '.env'

    code = main.main(['--base-path', 'C:\\docker\\', '--media-path', 'D:\\media\\',
                      '--env-file', str(env_file)], input_func=answers())

    assert code == 0
    report = spy.spy_return
    assert (report.created, report.existing, report.failed) == (12, 0, 0)
    lines = env_file.read_text().splitlines()
    assert 'BASE_PATH=/mnt/c/docker' in lines
    assert 'MEDIA_SHARE=/mnt/d/media' in lines
    assert 'TZ=America/New_York' in lines

def test_end_to_end_second_run_keeps_env(tmp_path, mocker, docker_ok):
    """Re-running finds every directory and leaves a declined .env alone."""
    spy = mocker.spy(core, 'materialize_directories')
    env_file = tmp_path / '.env'
    argv = ['--base-path', str(tmp_path / 'docker'), '--media-path', str(tmp_path / 'media'),
            '--env-file', str(env_file)]

    assert main.main(argv, input_func=answers()) == 0
    original = env_file.read_bytes()

    assert main.main(argv, input_func=answers('n')) == 0
    second = spy.spy_return
    assert (second.created, second.existing, second.failed) == (0, 12, 0)
    assert env_file.read_bytes() == original

def test_partial_failure_still_exits_zero(tmp_path, mocker, docker_ok):
    base = tmp_path / 'docker'
    base.mkdir()
    (base / 'gluetun').write_text('in the way')
    spy = mocker.spy(core, 'materialize_directories')

    code = main.main(['--base-path', str(base), '--media-path', str(tmp_path / 'media'),
                      '--env-file', str(tmp_path / '.env')], input_func=answers())

    assert code == 0
    assert spy.spy_return.failed == 1
    assert (tmp_path / '.env').exists()

def test_env_write_failure_still_exits_zero(tmp_path, mocker, docker_ok):
    mocker.patch('core.write_text_atomic', side_effect=OSError("disk full"))
    code = main.main(['--base-path', str(tmp_path / 'docker'), '--media-path', str(tmp_path / 'media'),
                      '--env-file', str(tmp_path / '.env')], input_func=answers())
    assert code == 0

def test_dry_run_changes_nothing(tmp_path, docker_ok):
    code = main.main(['--dry-run', '--base-path', str(tmp_path / 'docker'),
                      '--media-path', str(tmp_path / 'media'), '--env-file', str(tmp_path / '.env')],
                     input_func=answers())

    assert code == 0
    assert os.listdir(tmp_path) == []

def test_interactive_paths(tmp_path, docker_ok):
    code = main.main(['--env-file', str(tmp_path / '.env')],
                     input_func=answers('', str(tmp_path / 'docker') + '/', str(tmp_path / 'media')))

    assert code == 0
    assert (tmp_path / 'docker' / 'plex' / 'config').is_dir()
    assert (tmp_path / 'media' / 'downloads' / 'incomplete').is_dir()

def test_next_steps_printed(tmp_path, docker_ok, capsys):
    main.main(['--base-path', str(tmp_path / 'docker'), '--media-path', str(tmp_path / 'media'),
               '--env-file', str(tmp_path / '.env')], input_func=answers())
    out = capsys.readouterr().out
    assert 'Next steps' in out
    assert 'docker compose up -d' in out

def test_aborted_prompt_exits_130(tmp_path, docker_ok):
    def interrupted(prompt=''):
        raise KeyboardInterrupt
    code = main.main(['--env-file', str(tmp_path / '.env')], input_func=interrupted)
    assert code == 130

def test_check_services_mode(mocker):
    mock_health = mocker.patch('main.run_healthcheck', return_value=1)
    mock_check = mocker.patch('main.check_docker')

    assert main.main(['--check-services'], input_func=answers()) == 1
    mock_health.assert_called_once()
    mock_check.assert_not_called()

@pytest.mark.skipif(sys.platform == 'win32', reason="Undecodable bytes in paths are a POSIX case")
def test_undecodable_base_path_still_exits_zero(tmp_path, docker_ok, capsys):
    base = os.fsdecode(os.fsencode(str(tmp_path)) + b'/dock\xff')
    env_file = tmp_path / '.env'

    code = main.main(['--base-path', base, '--media-path', str(tmp_path / 'media'),
                      '--env-file', str(env_file)], input_func=answers())

    assert code == 0
    assert not env_file.exists()
    assert "dock\ufffd" in capsys.readouterr().out
