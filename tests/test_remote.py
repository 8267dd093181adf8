from unittest import mock

import paramiko
import pytest

from ipsetctl.errors import IPSetError
from ipsetctl.ipset import IPSet
from ipsetctl.remote import SSHRunner


@pytest.fixture()
def ssh_client():
    with mock.patch('ipsetctl.remote.paramiko.SSHClient') as cls:
        client = cls.return_value
        client.get_transport.return_value.is_active.return_value = True
        yield client


def make_channel(client, stdout=b'', stderr=b'', returncode=0):
    chan = mock.Mock()
    chan.makefile.return_value.read.return_value = stdout
    chan.makefile_stderr.return_value.read.return_value = stderr
    chan.recv_exit_status.return_value = returncode
    client.get_transport.return_value.open_session.return_value = chan
    return chan


def test_run_with_stdin(ssh_client):
    chan = make_channel(ssh_client)
    r = SSHRunner('fw1').run(['/usr/sbin/ipset', 'restore'], input='add a 1.2.3.4\n', combined=True)
    chan.set_combine_stderr.assert_called_once_with(True)
    chan.exec_command.assert_called_once_with('/usr/sbin/ipset restore')
    chan.sendall.assert_called_once_with(b'add a 1.2.3.4\n')
    chan.shutdown_write.assert_called_once_with()
    chan.close.assert_called_once_with()
    assert r.returncode == 0


def test_run_quotes_arguments(ssh_client):
    chan = make_channel(ssh_client, stdout=b'x\n', stderr=b'warn\n', returncode=3)
    r = SSHRunner('fw1').run(['ipset', 'add', 'my set', '1.2.3.4'])
    chan.exec_command.assert_called_once_with("ipset add 'my set' 1.2.3.4")
    assert (r.returncode, r.stdout, r.stderr) == (3, 'x\n', 'warn\n')


def test_which(ssh_client):
    make_channel(ssh_client, stdout=b'/usr/sbin/ipset\n')
    assert SSHRunner('fw1').which('ipset') == '/usr/sbin/ipset'


def test_which_missing(ssh_client):
    make_channel(ssh_client, returncode=1)
    assert SSHRunner('fw1').which('ipset') is None


def test_connect_failure(ssh_client):
    ssh_client.get_transport.return_value = None
    ssh_client.connect.side_effect = paramiko.SSHException('Authentication failed.')
    with pytest.raises(IPSetError, match='unable to connect to fw1: Authentication failed'):
        SSHRunner('fw1', key_path='~/.ssh/id_ed25519').run(['ipset', 'list', '-n'])


def test_ipset_over_ssh(ssh_client):
    make_channel(ssh_client, stdout=b'ipset v7.10, protocol version: 7\n')
    ipset = IPSet(path='/usr/sbin/ipset', runner=SSHRunner('fw1'))
    assert ipset.version() == (7, 10, 0)


def test_channel_closed_after_failure(ssh_client):
    chan = make_channel(ssh_client)
    chan.exec_command.side_effect = paramiko.SSHException('channel closed')
    with pytest.raises(IPSetError, match='unable to run ipset on fw1'):
        SSHRunner('fw1').run(['ipset', 'save'])
    chan.close.assert_called_once_with()


def test_close(ssh_client):
    SSHRunner('fw1').close()
    ssh_client.close.assert_called_once_with()
