"""
Sample scanner lines, JSON events and policy reports used across tests.
"""

from typing import Any


FILE_LINE: str = (
    "[CORP\\alice@WS01] 2024-01-01 10:00:00Z [File] {Red}"
    "<KeepConfigRegexRed|R|password|1.2kB|2023-12-31 09:30:00Z>"
    "(\\\\fs01\\share\\config.ini) set password hunter2\\r\\nrem \\(legacy\\)"
)

SHARE_LINE: str = (
    "[CORP\\alice@WS01] 2024-01-01 10:00:00Z [Share] {Green}"
    "<\\\\fs01\\share>(R) Department files"
)

POLICY_REPORT: str = """\
2024-01-01 10:00:00 [Info] Group Policy audit started
[GPO]
| GPO              | Default Domain Policy {31B2F340-016D-11D2-945F-00C04FB984F9} Enabled |
| ---------------- | ---------------- |
| Date Created     | 2020-01-01 09:00:00 |
| Date Modified    | 2024-01-01 09:00:00 |
| Path in Sysvol   | \\\\corp.local\\SysVol\\Policies |
| Link             | corp.local |
| Link             | corp.local/Servers |
| Owner            | CORP\\Domain Admins |

\\___
| Setting - Computer Policy | Registry |
| Key                       | HKLM\\Software\\Policies\\Test |
| Value                     | 1 |
    \\___
    | Finding | Red |
    | Reason  | Anonymous access allowed |
    | Detail  | Value 1 enables it |

\\___
| Setting - User Policy | Script |
| Script                | logon.bat |
| Member                | CORP\\alice |
| Member                | CORP\\bob |

2024-01-01 10:05:00 [Finish] Finished at 2024-01-01 10:05:00
GPOin' took 00:05:00
"""

def file_entry(
    severity: str = "Red",
    full_path: str = "\\\\fs01\\share\\config.ini",
    rule: str = "KeepConfigRegexRed",
    context: str = "password=hunter2",
) -> dict[str, Any]:
    """Build one structured JSON event for a file finding."""
    return {
        "time": "2024-01-01T10:00:00Z",
        "level": "Warn",
        "message": f"[File] {{{severity}}} {full_path}",
        "eventProperties": {
            severity: {
                "FileResult": {
                    "FileInfo": {
                        "FullName": full_path,
                        "Name": full_path.rsplit("\\", 1)[-1],
                        "Length": 1234,
                        "CreationTimeUtc": "2023-01-01T00:00:00Z",
                        "LastWriteTimeUtc": "2023-06-01T00:00:00Z",
                    },
                    "TextResult": {
                        "MatchContext": context,
                        "MatchedStrings": ["password"],
                    },
                    "MatchedRule": {
                        "RuleName": rule,
                        "Triage": severity,
                    },
                    "RwStatus": {
                        "CanRead": True,
                        "CanWrite": False,
                        "CanModify": True,
                    },
                }
            }
        },
    }

def share_entry(severity: str = "Yellow", share_path: str = "\\\\fs01\\share") -> dict[str, Any]:
    """Build one structured JSON event for a share finding."""
    return {
        "time": "2024-01-01T10:00:00Z",
        "level": "Warn",
        "message": f"[Share] {{{severity}}} {share_path}",
        "eventProperties": {
            severity: {
                "ShareResult": {
                    "SharePath": share_path,
                    "ShareComment": "Department files",
                    "Listable": True,
                    "RootWritable": True,
                    "RootReadable": True,
                    "RootModifyable": False,
                    "Snaffle": False,
                    "ScanShare": True,
                }
            }
        },
    }
