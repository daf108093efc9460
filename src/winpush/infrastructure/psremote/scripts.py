"""
PowerShell script templates.

Every value interpolated into a script goes through ps_quote, so paths and
uninstall strings with embedded quotes survive command-line reconstruction.
"""

from __future__ import annotations


def ps_quote(value: str) -> str:
    """Render a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


def _start_process(executable: str, arguments: str) -> str:
    line = f"$process = Start-Process -FilePath {ps_quote(executable)}"
    if arguments:
        line += f" -ArgumentList {ps_quote(arguments)}"
    return line + " -Wait -PassThru -NoNewWindow"


def staged_install_script(staging_directory: str, executable: str, arguments: str) -> str:
    """
    Run an installer from the staging directory and remove the directory.

    The script exits with the installer's exit code.
    """
    return "\n".join([
        "$ErrorActionPreference = 'Stop'",
        f"$staging = {ps_quote(staging_directory)}",
        "$exitCode = 1",
        "try {",
        "    Set-Location -LiteralPath $staging",
        f"    {_start_process(executable, arguments)}",
        "    $exitCode = $process.ExitCode",
        "} finally {",
        "    Set-Location -LiteralPath $env:SystemRoot",
        "    Remove-Item -LiteralPath $staging -Recurse -Force -ErrorAction SilentlyContinue",
        "}",
        "exit $exitCode",
    ])


def command_script(executable: str, arguments: str) -> str:
    """Run a command synchronously and exit with its exit code."""
    return "\n".join([
        "$ErrorActionPreference = 'Stop'",
        _start_process(executable, arguments),
        "exit $process.ExitCode",
    ])


INVENTORY_SCRIPT = r"""
$paths = @(
    'HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall\*',
    'HKLM:\SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall\*'
)
$apps = foreach ($path in $paths) {
    Get-ItemProperty -Path $path -ErrorAction SilentlyContinue |
        Where-Object { $_.DisplayName } |
        ForEach-Object {
            [PSCustomObject]@{
                Computer             = $env:COMPUTERNAME
                Name                 = [string]$_.DisplayName
                Version              = [string]$_.DisplayVersion
                GUID                 = [string]$_.PSChildName
                InstallLocation      = [string]$_.InstallLocation
                UninstallString      = [string]$_.UninstallString
                QuietUninstallString = [string]$_.QuietUninstallString
            }
        }
}
ConvertTo-Json -InputObject @($apps) -Depth 3 -Compress
"""
