from sysd_manager.config import Settings
from sysd_manager.privilege import ElevationStage, PrivilegeBroker

ARGV = ["systemctl", "restart", "ssh.service"]


class Prompt:
    def __init__(self, answer):
        self.answer = answer
        self.asked = []

    def __call__(self, command):
        self.asked.append(command)
        return self.answer


def test_primary_success_skips_prompt(fake_system):
    prompt = Prompt("secret")
    result = PrivilegeBroker(prompt).run(ARGV)

    assert result.succeeded
    assert result.stage is ElevationStage.PRIMARY
    assert fake_system.calls == [["pkexec", *ARGV]]
    assert prompt.asked == []


def test_primary_failure_falls_back_to_sudo_with_password(fake_system):
    fake_system.pkexec_returncode = 126
    fake_system.pkexec_stderr = "Error executing command as another user: Not authorized"
    prompt = Prompt("secret")

    result = PrivilegeBroker(prompt).run(ARGV)

    assert result.succeeded
    assert result.stage is ElevationStage.FALLBACK
    assert prompt.asked == ["systemctl restart ssh.service"]
    assert fake_system.calls[-1] == ["sudo", "-S", "-p", "", *ARGV]
    assert fake_system.popens[-1].stdin_data == "secret\n"


def test_missing_pkexec_falls_back(fake_system):
    fake_system.missing.add("pkexec")
    result = PrivilegeBroker(Prompt("secret")).run(ARGV)
    assert result.succeeded
    assert fake_system.commands("sudo")


def test_fallback_failure_reports_combined_output(fake_system):
    fake_system.pkexec_returncode = 1
    fake_system.sudo_returncode = 1
    fake_system.sudo_output = "Failed to restart ssh.service: Unit ssh.service not found.\n"

    result = PrivilegeBroker(Prompt("secret")).run(ARGV)

    assert not result.succeeded
    assert "Unit ssh.service not found" in result.output


def test_cancelled_prompt_fails_without_spawning_sudo(fake_system):
    fake_system.pkexec_returncode = 126
    for answer in (None, ""):
        result = PrivilegeBroker(Prompt(answer)).run(ARGV)
        assert not result.succeeded
        assert result.output == ""
    assert fake_system.commands("sudo") == []


def test_missing_sudo_is_a_failure(fake_system):
    fake_system.missing.update({"pkexec", "sudo"})
    result = PrivilegeBroker(Prompt("secret")).run(ARGV)
    assert not result.succeeded
    assert result.stage is ElevationStage.FALLBACK


def test_unit_name_stays_a_single_argument(fake_system):
    hostile = "x.service; rm -rf /"
    PrivilegeBroker(Prompt("secret")).run(["systemctl", "start", hostile])
    assert fake_system.calls[0] == ["pkexec", "systemctl", "start", hostile]


def test_configured_elevation_programs(fake_system):
    settings = Settings(primary_elevation=("pkexec", "--disable-internal-agent"))
    PrivilegeBroker(Prompt(None), settings).run(ARGV)
    assert fake_system.calls[0][:2] == ["pkexec", "--disable-internal-agent"]
