from datetime import date

from carwash.client.form import BookingForm


def filled_form(**values):
    form = BookingForm(
        customer_name="  Jennifer Martinez ",
        make="Mazda",
        model="CX-5",
        year=2022,
        car_type="suv",
        service_type="Deluxe Wash",
        date="2025-09-30T00:00:00.000Z",
        time_slot="11:00",
    )
    return form.update(**values)


def test_live_price_and_duration():
    form = filled_form()
    assert (form.price, form.duration, form.duration_label) == (50, 90, "1h 30m")

    form = form.toggle_add_on("Polishing").toggle_add_on("Tire Shine")
    assert form.base_price == 50
    assert form.add_on_lines == [("Polishing", 30), ("Tire Shine", 10)]
    assert (form.price, form.duration, form.duration_label) == (90, 120, "2h 0m")

    form = form.toggle_add_on("Polishing")
    assert form.add_ons == ["Tire Shine"]
    assert form.price == 60


def test_payload_is_normalized():
    payload = filled_form(add_ons=["Tire Shine", "Tire Shine"], rating=0).to_payload()

    assert payload["customerName"] == "Jennifer Martinez"
    assert payload["date"] == "2025-09-30"
    assert payload["addOns"] == ["Tire Shine"]
    assert payload["price"] == 60
    assert payload["duration"] == 105
    assert payload["status"] == "Pending"
    assert "rating" not in payload


def test_valid_form_has_no_errors():
    assert filled_form(rating=5).validate() == []


def test_validation_reports_fields():
    form = BookingForm(customer_name="", make="Ford", model="", year=date.today().year + 3, car_type="suv")

    fields = {e["field"] for e in form.validate()}

    assert {"customerName", "carDetails.model", "carDetails.year", "serviceType", "date", "timeSlot"} <= fields


def test_prefill_from_booking():
    booking = {
        "id": "abc",
        "customerName": "David Brown",
        "carDetails": {"make": "Ford", "model": "F-150", "year": 2021, "type": "pickup"},
        "serviceType": "Basic Wash",
        "date": "2025-09-26",
        "timeSlot": "16:00",
        "status": "Cancelled",
        "rating": None,
        "addOns": ["Air Freshener"],
    }

    form = BookingForm.from_booking(booking)

    assert form.make == "Ford"
    assert form.status == "Cancelled"
    assert form.price == 30
    assert form.to_payload()["carDetails"]["year"] == 2021
