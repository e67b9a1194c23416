from lnpbp.invoice import config


def test_env_precedence(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('LNPBP_INVOICE_STRICT_SIGNATURE', raising=False)
    assert(config.env('LNPBP_INVOICE_STRICT_SIGNATURE', '0') == '0')
    assert(not config.strict_signature())

    (tmp_path / config.CONFIG_FILE).write_text("LNPBP_INVOICE_STRICT_SIGNATURE=1\nOTHER=a=b\n")
    assert(config.env('OTHER') == 'a=b')
    assert(config.strict_signature())

    monkeypatch.setenv('LNPBP_INVOICE_STRICT_SIGNATURE', '0')
    assert(not config.strict_signature())
