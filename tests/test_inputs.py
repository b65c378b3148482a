import json

import pytest

from luxbridge.inputs import (
    ReadInput1,
    ReadInput2,
    ReadInput3,
    ReadInputAll,
    ReadInputs,
)
from luxbridge.serial import Serial
from luxbridge.utils import UnixTime

FIXED_TIME = UnixTime(1646370367)


def _datalog():
    return Serial.from_str("1234567890")


def _input1_values():
    return dict(
        status=16, v_pv_1=0.0, v_pv_2=0.0, v_pv_3=0.0, v_bat=49.1, soc=55, soh=0,
        p_pv=0, p_pv_1=0, p_pv_2=0, p_pv_3=0, p_charge=0, p_discharge=813,
        v_ac_r=246.3, v_ac_s=409.6, v_ac_t=0.0, f_ac=50.02, p_inv=732, p_rec=0,
        pf=1.0, v_eps_r=246.3, v_eps_s=256.0, v_eps_t=2875.2, f_eps=50.02,
        p_eps=0, s_eps=0, p_to_grid=0, p_to_user=0, e_pv_day=0.0,
        e_pv_day_1=0.0, e_pv_day_2=0.0, e_pv_day_3=0.0, e_inv_day=5.9,
        e_rec_day=2.2, e_chg_day=2.2, e_dischg_day=7.5, e_eps_day=0.0,
        e_to_grid_day=0.2, e_to_user_day=3.2, v_bus_1=373.2, v_bus_2=293.5,
    )


def _input2_values():
    return dict(
        e_pv_all=4215.8, e_pv_all_1=4215.8, e_pv_all_2=0.0, e_pv_all_3=0.0,
        e_inv_all=3249.1, e_rec_all=3919.5, e_chg_all=4392.6,
        e_dischg_all=4092.7, e_eps_all=0.0, e_to_grid_all=979.6,
        e_to_user_all=5889.8, t_inner=49, t_rad_1=36, t_rad_2=37, t_bat=0,
        runtime=67589346,
    )


def _input3_values():
    return dict(
        max_chg_curr=150.0, max_dischg_curr=150.0, charge_volt_ref=53.2,
        dischg_cut_volt=40.0, bat_status_0=0, bat_status_1=0, bat_status_2=0,
        bat_status_3=0, bat_status_4=0, bat_status_5=192, bat_status_6=0,
        bat_status_7=0, bat_status_8=0, bat_status_9=0, bat_status_inv=3,
        bat_count=6, bat_capacity=0, bat_current=0.0, bms_event_1=1,
        bms_event_2=2, max_cell_voltage=0.0, min_cell_voltage=0.0,
        max_cell_temp=0.0, min_cell_temp=0.0, bms_fw_update_state=2,
        cycle_count=200, vbat_inv=5.4,
    )


def read_input_1():
    return ReadInput1(**_input1_values(), time=FIXED_TIME, datalog=_datalog())


def read_input_2():
    return ReadInput2(**_input2_values(), time=FIXED_TIME, datalog=_datalog())


def read_input_3():
    return ReadInput3(**_input3_values(), time=FIXED_TIME, datalog=_datalog())


def read_input_all():
    return ReadInputAll(
        **_input1_values(),
        **_input2_values(),
        **_input3_values(),
        time=FIXED_TIME,
        datalog=_datalog(),
    )


def _compact(mapping):
    return json.dumps(mapping, separators=(",", ":"))


def test_handles_missing_read_input():
    read_inputs = ReadInputs()
    read_inputs.read_input_1 = read_input_1()
    assert read_inputs.to_input_all() is None

    read_inputs.read_input_2 = read_input_2()
    assert read_inputs.to_input_all() is None

    read_inputs.read_input_3 = read_input_3()
    assert read_inputs.to_input_all() == read_input_all()

    read_inputs = ReadInputs()
    read_inputs.read_input_3 = read_input_3()
    assert read_inputs.to_input_all() is None


def test_read_input_all_from_ones():
    parsed = ReadInputAll.parse(bytes([1] * 254), Serial.from_str("2222222222"))
    parsed.time = FIXED_TIME
    expected = (
        "{\"status\":257,\"v_pv_1\":25.7,\"v_pv_2\":25.7,\"v_pv_3\":25.7,\"v_bat\":25.7,\"soc\":1,\"soh\":1,\"p_pv\":771,\"p_pv_1\":257,\"p_pv_2\":257,\"p_pv_3\":257,\"p_charge\":257,\"p_discharge\":257,\"v_ac_r\":25.7,\"v_ac_s\":25.7,\"v_ac_t\":25.7,\"f_ac\":2.57,\"p_inv\":257,\"p_rec\":257,\"pf\":0.257,\"v_eps_r\":25.7,\"v_eps_s\":25.7,\"v_eps_t\":25.7,\"f_eps\":2.57,\"p_eps\":257,\"s_eps\":257,\"p_to_grid\":257,\"p_to_user\":257,\"e_pv_day\":77.1,\"e_pv_day_1\":25.7,\"e_pv_day_2\":25.7,\"e_pv_day_3\":25.7,\"e_inv_day\":25.7,\"e_rec_day\":25.7,\"e_chg_day\":25.7,\"e_dischg_day\":25.7,\"e_eps_day\":25.7,\"e_to_grid_day\":25.7,\"e_to_user_day\":25.7,\"v_bus_1\":25.7,\"v_bus_2\":25.7,\"e_pv_all\":5052902.699999999,\"e_pv_all_1\":1684300.9,\"e_pv_all_2\":1684300.9,\"e_pv_all_3\":1684300.9,\"e_inv_all\":1684300.9,\"e_rec_all\":1684300.9,\"e_chg_all\":1684300.9,\"e_dischg_all\":1684300.9,\"e_eps_all\":1684300.9,\"e_to_grid_all\":1684300.9,\"e_to_user_all\":1684300.9,\"t_inner\":257,\"t_rad_1\":257,\"t_rad_2\":257,\"t_bat\":257,\"runtime\":16843009,\"max_chg_curr\":2.57,\"max_dischg_curr\":2.57,\"charge_volt_ref\":25.7,\"dischg_cut_volt\":25.7,\"bat_status_0\":257,\"bat_status_1\":257,\"bat_status_2\":257,\"bat_status_3\":257,\"bat_status_4\":257,\"bat_status_5\":257,\"bat_status_6\":257,\"bat_status_7\":257,\"bat_status_8\":257,\"bat_status_9\":257,\"bat_status_inv\":257,\"bat_count\":257,\"bat_capacity\":257,\"bat_current\":2.57,\"bms_event_1\":257,\"bms_event_2\":257,\"max_cell_voltage\":2.57,\"min_cell_voltage\":2.57,\"max_cell_temp\":2.57,\"min_cell_temp\":2.57,\"bms_fw_update_state\":257,\"cycle_count\":257,\"vbat_inv\":25.7,\"time\":1646370367,\"datalog\":\"2222222222\"}"
    )
    assert _compact(parsed.to_dict()) == expected


def test_read_input1_from_zeros():
    parsed = ReadInput1.parse(bytes(80), Serial.from_str("2222222222"))
    parsed.time = FIXED_TIME
    expected = (
        "{\"status\":0,\"v_pv_1\":0.0,\"v_pv_2\":0.0,\"v_pv_3\":0.0,\"v_bat\":0.0,\"soc\":0,\"soh\":0,\"p_pv\":0,\"p_pv_1\":0,\"p_pv_2\":0,\"p_pv_3\":0,\"p_charge\":0,\"p_discharge\":0,\"v_ac_r\":0.0,\"v_ac_s\":0.0,\"v_ac_t\":0.0,\"f_ac\":0.0,\"p_inv\":0,\"p_rec\":0,\"pf\":0.0,\"v_eps_r\":0.0,\"v_eps_s\":0.0,\"v_eps_t\":0.0,\"f_eps\":0.0,\"p_eps\":0,\"s_eps\":0,\"p_to_grid\":0,\"p_to_user\":0,\"e_pv_day\":0.0,\"e_pv_day_1\":0.0,\"e_pv_day_2\":0.0,\"e_pv_day_3\":0.0,\"e_inv_day\":0.0,\"e_rec_day\":0.0,\"e_chg_day\":0.0,\"e_dischg_day\":0.0,\"e_eps_day\":0.0,\"e_to_grid_day\":0.0,\"e_to_user_day\":0.0,\"v_bus_1\":0.0,\"v_bus_2\":0.0,\"time\":1646370367,\"datalog\":\"2222222222\"}"
    )
    assert _compact(parsed.to_dict()) == expected


def test_read_input2_from_ones():
    parsed = ReadInput2.parse(bytes([1] * 80), _datalog())
    assert parsed.e_pv_all_1 == 1684300.9
    assert parsed.e_pv_all == 5052902.699999999
    assert parsed.t_inner == 257
    assert parsed.runtime == 16843009
    assert parsed.datalog == _datalog()


def test_read_input3_from_ones():
    parsed = ReadInput3.parse(bytes([1] * 80), _datalog())
    assert parsed.max_chg_curr == 2.57
    assert parsed.bat_count == 257
    assert parsed.vbat_inv == 25.7
    assert parsed.bat_status_inv == 257


def test_parse_real_block_sums_pv():
    values = bytes([
        32, 0, 0, 0, 0, 0, 0, 0, 250, 1, 77, 0, 0, 53, 0, 0, 0, 0, 0, 0, 128, 13, 0, 0,
        114, 9, 0, 16, 132, 0, 142, 19, 0, 0, 198, 13, 202, 5, 232, 3, 114, 9, 0, 10, 80,
        112, 142, 19, 0, 0, 0, 0, 0, 0, 36, 15, 0, 0, 0, 0, 0, 0, 91, 0, 83, 0, 87, 0, 114,
        0, 0, 0, 1, 0, 102, 0, 174, 14, 183, 12,
    ])
    parsed = ReadInput1.parse(values, _datalog())
    assert parsed.status == 32
    assert parsed.p_pv == parsed.p_pv_1 + parsed.p_pv_2 + parsed.p_pv_3
    assert parsed.e_pv_day == parsed.e_pv_day_1 + parsed.e_pv_day_2 + parsed.e_pv_day_3


def test_signed_state_of_charge():
    data = bytearray(80)
    data[10] = 0xFF
    assert ReadInput1.parse(bytes(data)).soc == -1


def test_parse_defaults_datalog():
    assert ReadInput3.parse(bytes(56)).datalog == Serial.default()


@pytest.mark.parametrize(
    "cls, short",
    [(ReadInput1, 79), (ReadInput2, 61), (ReadInput3, 55), (ReadInputAll, 229)],
)
def test_parse_too_short(cls, short):
    with pytest.raises(ValueError):
        cls.parse(bytes(short), _datalog())


def test_parse_stamps_time():
    before = UnixTime.now().timestamp()
    parsed = ReadInput2.parse(bytes(62))
    after = UnixTime.now().timestamp()
    assert before <= parsed.time.timestamp() <= after


def test_combined_matches_parsed_parts():
    raw = bytes(range(254))
    parsed_all = ReadInputAll.parse(raw, _datalog())
    inputs = ReadInputs(
        read_input_1=ReadInput1.parse(raw[0:80], _datalog()),
        read_input_2=ReadInput2.parse(raw[80:160], _datalog()),
        read_input_3=ReadInput3.parse(raw[160:240], _datalog()),
    )
    combined = inputs.to_input_all()
    combined.time = parsed_all.time
    assert combined == parsed_all


def test_to_dict_key_order_ends_with_stamp():
    keys = list(read_input_all().to_dict())
    assert keys[0] == "status"
    assert keys[-2:] == ["time", "datalog"]
    assert keys.index("v_bus_2") < keys.index("e_pv_all") < keys.index("max_chg_curr")