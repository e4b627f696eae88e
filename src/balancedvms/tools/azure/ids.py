from __future__ import annotations

_LB_CHILD_ID = (
    "/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
    "/providers/Microsoft.Network/loadBalancers/{lb_name}/{sub_type}/{name}"
)


def load_balancer_child_id(
    subscription_id: str, resource_group: str, lb_name: str, sub_type: str, name: str
) -> str:
    """Predict the ARM id of a load balancer child (frontend config, pool, probe).

    The load balancer body references its own children before the load
    balancer exists, so these ids are built from the template rather than
    read back from the service.
    """
    return _LB_CHILD_ID.format(
        subscription_id=subscription_id,
        resource_group=resource_group,
        lb_name=lb_name,
        sub_type=sub_type,
        name=name,
    )


def vhd_uri(storage_account: str, vm_name: str, container: str = "golangcontainer") -> str:
    return f"https://{storage_account}.blob.core.windows.net/{container}/{vm_name}.vhd"
