from equity_api.domain.offer_links import TrackingConfig, build_campaign_offer_link, build_deal_offer_link
from equity_api.domain.pipeline import DEFAULT_STAGE, PIPELINE_STAGES, group_deals_by_stage, stage_of


def test_deal_link_carries_deal_id_in_sub5():
    cfg = TrackingConfig(tracking_domain="www.trk.example.com", encoded_value="XYZ", role="manager")
    assert build_deal_offer_link(cfg, "deal-1") == "https://www.trk.example.com/XYZ/2CTPL/?sub5=deal-1"


def test_scheme_and_slashes_in_domain_are_tolerated():
    cfg = TrackingConfig(tracking_domain="https://www.trk.example.com/", encoded_value="/XYZ/", role="manager")
    assert build_deal_offer_link(cfg, "d", offer_hash="OTHER") == "https://www.trk.example.com/XYZ/OTHER/?sub5=d"


def test_campaign_link_adds_sub3_only_for_officers():
    cfg = TrackingConfig(tracking_domain="trk.example.com", encoded_value="XYZ", role="manager")
    assert build_campaign_offer_link(cfg, "c-1") == "https://trk.example.com/XYZ/2CTPL/?sub4=c-1"
    assert (
        build_campaign_offer_link(cfg, "c-1", officer_id="o-9")
        == "https://trk.example.com/XYZ/2CTPL/?sub4=c-1&sub3=o-9"
    )


def test_stage_of_defaults_unknown_statuses():
    assert stage_of(None) == DEFAULT_STAGE == "Offer Generated"
    assert stage_of("pending") == "Offer Generated"
    assert stage_of("Funds Disbursed") == "Funds Disbursed"


def test_group_deals_by_stage_keeps_every_column_and_order():
    deals = [
        {"id": 1, "event_status": "Application Created"},
        {"id": 2, "event_status": None},
        {"id": 3, "event_status": "bogus"},
        {"id": 4, "event_status": "Application Created"},
    ]
    grouped = group_deals_by_stage(deals)

    assert list(grouped) == list(PIPELINE_STAGES)
    assert [d["id"] for d in grouped["Application Created"]] == [1, 4]
    assert [d["id"] for d in grouped["Offer Generated"]] == [2, 3]
    assert grouped["Closed Lost"] == []
