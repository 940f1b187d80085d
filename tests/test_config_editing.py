"""
Unit tests for targeted configuration rewrites.

Covers sshd_config directives, fail2ban INI options and apt.conf options.
"""

import pytest

from vps_hardening.tools.unattended import AUTOMATIC_REBOOT_KEY, UPDATE_LISTS_KEY
from vps_hardening.utils.config_editing import (
    get_apt_option, get_directive, get_ini_option,
    set_apt_option, set_directive, set_ini_option
)

from conftest import DEFAULT_SSHD_CONFIG, SAMPLE_JAIL_CONF, SAMPLE_UNATTENDED_CONFIG


def active_lines(content, key):
    return [line for line in content.splitlines() if line.strip().lower().startswith(key.lower())]


class TestSSHDirectives:
    """Test sshd_config reading and rewriting."""

    def test_first_occurrence_wins(self):
        content = "PermitRootLogin yes\nPermitRootLogin no\n"
        assert get_directive(content, "PermitRootLogin") == "yes"

    def test_lookup_is_case_insensitive(self):
        assert get_directive("permitrootlogin No\n", "PermitRootLogin") == "No"
        assert get_directive("Port=2222\n", "Port") == "2222"

    def test_commented_and_missing_directives(self):
        assert get_directive(DEFAULT_SSHD_CONFIG, "PermitRootLogin") is None
        assert get_directive(DEFAULT_SSHD_CONFIG, "UsePAM") == "yes"

    def test_match_block_values_ignored(self):
        content = "PermitRootLogin no\nMatch User deploy\n    PermitRootLogin yes\n"
        assert get_directive(content, "PermitRootLogin") == "no"

        content = "UsePAM yes\nMatch User deploy\n    PasswordAuthentication yes\n"
        assert get_directive(content, "PasswordAuthentication") is None

    def test_rewrites_first_and_drops_duplicates(self):
        content = "PermitRootLogin yes\nPort 22\nPermitRootLogin without-password\n"

        result = set_directive(content, "PermitRootLogin", "no")

        assert result == "PermitRootLogin no\nPort 22\n"

    def test_replaces_commented_default(self):
        result = set_directive("#PermitRootLogin prohibit-password\nUsePAM yes\n",
                               "PermitRootLogin", "no")
        assert result == "PermitRootLogin no\nUsePAM yes\n"

    def test_inserts_before_match_block(self):
        content = "UsePAM yes\nMatch User bob\n    PasswordAuthentication yes\n"

        result = set_directive(content, "PasswordAuthentication", "no")

        assert result == (
            "UsePAM yes\nPasswordAuthentication no\nMatch User bob\n"
            "    PasswordAuthentication yes\n"
        )

    def test_appends_to_empty_file(self):
        assert set_directive("", "Port", "2222") == "Port 2222\n"

    def test_is_idempotent(self):
        once = set_directive(DEFAULT_SSHD_CONFIG, "Port", "2222")
        twice = set_directive(once, "Port", "2222")

        assert once == twice
        assert active_lines(twice, "Port ") == ["Port 2222"]

    def test_other_lines_untouched(self):
        result = set_directive(DEFAULT_SSHD_CONFIG, "PasswordAuthentication", "no")

        before = DEFAULT_SSHD_CONFIG.splitlines()
        after = result.splitlines()
        assert len(before) == len(after)
        changed = [(b, a) for b, a in zip(before, after) if b != a]
        assert changed == [("#PasswordAuthentication yes", "PasswordAuthentication no")]


class TestIniOptions:
    """Test fail2ban jail.local editing."""

    def test_rewrites_existing_option(self):
        result = set_ini_option(SAMPLE_JAIL_CONF, "DEFAULT", "bantime", "86400")

        assert get_ini_option(result, "DEFAULT", "bantime") == "86400"
        assert "bantime  = 10m" not in result

    def test_other_sections_untouched(self):
        result = set_ini_option(SAMPLE_JAIL_CONF, "DEFAULT", "maxretry", "3")

        assert get_ini_option(result, "DEFAULT", "maxretry") == "3"
        assert get_ini_option(result, "apache-auth", "maxretry") == "6"

    def test_adds_option_inside_section(self):
        result = set_ini_option(SAMPLE_JAIL_CONF, "sshd", "enabled", "true")

        assert get_ini_option(result, "sshd", "enabled") == "true"
        assert get_ini_option(result, "apache-auth", "enabled") is None
        lines = result.splitlines()
        assert lines.index("enabled = true") < lines.index("[apache-auth]")

    def test_keeps_continuation_lines_together(self):
        content = "[sshd]\nport = ssh\nlogpath = /var/log/auth.log\n          /var/log/secure\n\n"

        result = set_ini_option(content, "sshd", "enabled", "true")

        lines = result.splitlines()
        assert lines[3] == "          /var/log/secure"
        assert lines[4] == "enabled = true"

    def test_creates_missing_section(self):
        result = set_ini_option("[DEFAULT]\nmaxretry = 5\n", "sshd", "enabled", "true")
        assert result == "[DEFAULT]\nmaxretry = 5\n\n[sshd]\nenabled = true\n"

    def test_removes_duplicates_within_section(self):
        content = "[DEFAULT]\nbantime = 1\nfindtime = 2\nbantime = 3\n"

        result = set_ini_option(content, "DEFAULT", "bantime", "3600")

        assert result == "[DEFAULT]\nbantime = 3600\nfindtime = 2\n"

    def test_missing_section_or_key(self):
        assert get_ini_option(SAMPLE_JAIL_CONF, "nginx", "port") is None
        assert get_ini_option(SAMPLE_JAIL_CONF, "sshd", "maxretry") is None

    def test_is_idempotent(self):
        once = set_ini_option(SAMPLE_JAIL_CONF, "sshd", "port", "ssh,2222")
        assert set_ini_option(once, "sshd", "port", "ssh,2222") == once


class TestAptOptions:
    """Test apt.conf editing."""

    def test_uncomments_automatic_reboot(self):
        result = set_apt_option(SAMPLE_UNATTENDED_CONFIG, AUTOMATIC_REBOOT_KEY, "true")

        assert get_apt_option(result, AUTOMATIC_REBOOT_KEY) == "true"
        assert '//Unattended-Upgrade::Automatic-Reboot-Time "02:00";' in result
        assert '//Unattended-Upgrade::Automatic-Reboot "false";' not in result

    def test_rewrites_active_option_keeping_indent(self):
        content = '  APT::Periodic::Update-Package-Lists "0";\n'

        result = set_apt_option(content, UPDATE_LISTS_KEY, "1")

        assert result == '  APT::Periodic::Update-Package-Lists "1";\n'

    def test_appends_when_absent(self):
        assert set_apt_option("", UPDATE_LISTS_KEY, "1") == 'APT::Periodic::Update-Package-Lists "1";\n'

    def test_commented_option_not_read(self):
        assert get_apt_option(SAMPLE_UNATTENDED_CONFIG, AUTOMATIC_REBOOT_KEY) is None

    @pytest.mark.parametrize("value", ["true", "false"])
    def test_is_idempotent(self, value):
        once = set_apt_option(SAMPLE_UNATTENDED_CONFIG, AUTOMATIC_REBOOT_KEY, value)
        assert set_apt_option(once, AUTOMATIC_REBOOT_KEY, value) == once
